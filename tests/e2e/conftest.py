# tests/e2e/conftest.py
"""
Pytest fixtures for the bucket-migrate end-to-end tests.

This module sets up the testing environment, including:
- Spinning up Docker containers for source and destination S3 services (MinIO).
- Providing fixtures for S3 services endpoints and credentials.
- Creating and cleaning up an isolated bucket on both services per test.
"""

import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any, AsyncGenerator, Dict

import boto3
import pytest
import pytest_asyncio
import requests
from aiobotocore.session import AioSession, get_session
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError
from requests.exceptions import ConnectionError

from bucket_migrate.config import Profile, Profiles

if TYPE_CHECKING:
    from types_boto3_s3.service_resource import Bucket, S3ServiceResource

# --- Constants ---
S3_ACCESS_KEY: str = "minio-key"
S3_SECRET_KEY: str = "minio-secret"
S3_REGION: str = "us-east-1"


# --- Docker Fixtures ---
@pytest.fixture(scope="session")
def docker_compose_file(pytestconfig: pytest.Config) -> str:
    """
    Locate the docker-compose.yml file for the test suite.

    Args:
        pytestconfig (pytest.Config): The pytest configuration objects.

    Returns:
        str: The absolute path to the docker-compose.yml file.
    """
    return str(Path(pytestconfig.rootpath) / "tests" / "docker-compose.yml")


@pytest.fixture(scope="session")
def docker_compose_project_name() -> str:
    """
    Define a unique, static project name for the Docker stack.

    Returns:
        str: A unique name for the docker-compose project.
    """
    return "bucket-migrate-tests"


def _is_s3_responsive(url: str) -> bool:
    """
    Check if the MinIO health endpoint is responsive.

    Args:
        url (str): The base URL of the MinIO API.

    Returns:
        bool: True if the service is responsive, False otherwise.
    """
    try:
        # The health check endpoint for MinIO is /minio/health/live
        response: requests.Response = requests.get(f"{url}/minio/health/live")
        return response.status_code == 200
    except ConnectionError:
        return False


def _service_details(docker_ip: str, docker_services: Any, name: str) -> Dict[str, Any]:
    port: int = docker_services.port_for(name, 9000)
    api_url: str = f"http://{docker_ip}:{port}"
    docker_services.wait_until_responsive(
        timeout=30.0, pause=0.1, check=lambda: _is_s3_responsive(api_url)
    )
    return {
        "endpoint_url": api_url,
        "aws_access_key_id": S3_ACCESS_KEY,
        "aws_secret_access_key": S3_SECRET_KEY,
        "region_name": S3_REGION,
    }


@pytest.fixture(scope="session")
def source_s3_service(docker_ip: str, docker_services: Any) -> Dict[str, Any]:
    """
    Ensure the source S3 service is running and return its connection details.

    Args:
        docker_ip (str): The IP address of the Docker host, provided by pytest-docker.
        docker_services (Any): The pytest-docker services fixture.

    Returns:
        Dict[str, Any]: Connection details for the source S3 service.
    """
    return _service_details(docker_ip, docker_services, "minio-source")


@pytest.fixture(scope="session")
def dest_s3_service(docker_ip: str, docker_services: Any) -> Dict[str, Any]:
    """
    Ensure the destination S3 service is running and return its connection details.

    Args:
        docker_ip (str): The IP address of the Docker host, provided by pytest-docker.
        docker_services (Any): The pytest-docker services fixture.

    Returns:
        Dict[str, Any]: Connection details for the destination S3 service.
    """
    return _service_details(docker_ip, docker_services, "minio-destination")


@pytest.fixture(scope="session")
def minio_profiles(
    source_s3_service: Dict[str, Any], dest_s3_service: Dict[str, Any]
) -> Profiles:
    """
    Build the migration profiles for the two MinIO services.

    Args:
        source_s3_service (Dict[str, Any]): Connection details for the source S3.
        dest_s3_service (Dict[str, Any]): Connection details for the destination S3.

    Returns:
        Profiles: Profiles pointing at the source and destination services.
    """

    def _profile(service: Dict[str, Any]) -> Profile:
        return Profile(
            region=service["region_name"],
            endpoint=service["endpoint_url"],
            access_key=service["aws_access_key_id"],
            secret_key=service["aws_secret_access_key"],
        )

    return Profiles(
        old_profile=_profile(source_s3_service),
        new_profile=_profile(dest_s3_service),
    )


# --- Application Fixtures ---
@pytest_asyncio.fixture(scope="function")
async def s3_bucket(
    source_s3_service: Dict[str, Any],
    dest_s3_service: Dict[str, Any],
) -> AsyncGenerator[str, None]:
    """
    Create one uniquely named bucket on both S3 services for a single test.

    The same bucket name is used on both ends of a migration. Buckets and
    their contents are removed after the test.

    Args:
        source_s3_service (Dict[str, Any]): Connection details for the source S3.
        dest_s3_service (Dict[str, Any]): Connection details for the destination S3.

    Yield:
        AsyncGenerator[str, None]: The bucket name.
    """
    session: AioSession = get_session()
    bucket_name: str = f"test-bucket-{uuid.uuid4()}"

    async with (
        session.create_client("s3", **source_s3_service) as s3_source,
        session.create_client("s3", **dest_s3_service) as s3_dest,
    ):
        await s3_source.create_bucket(Bucket=bucket_name)
        await s3_dest.create_bucket(Bucket=bucket_name)

    yield bucket_name

    # Cleanup: boto3 is simpler for synchronous, recursive delete
    boto_config: BotoConfig = BotoConfig(
        retries={"max_attempts": 0, "mode": "standard"}
    )
    for service in (source_s3_service, dest_s3_service):
        resource: "S3ServiceResource" = boto3.resource(
            "s3", **service, config=boto_config
        )
        try:
            bucket_obj: "Bucket" = resource.Bucket(bucket_name)
            bucket_obj.objects.all().delete()
            bucket_obj.delete()
        except ClientError as e:
            if e.response["Error"]["Code"] != "NoSuchBucket":
                raise
