"""Object store backends for camgate."""

from camgate.config import StorageConfig
from camgate.storage.backend import ObjectStore, ObjectStream


def create_object_store(config: StorageConfig) -> ObjectStore:
    """Create an object store instance based on configuration.

    Supports the 'aws' and 'local' backends.

    Args:
        config: The storage section of the configuration.

    Returns:
        An uninitialised object store.

    Raises:
        ValueError: If the backend is unknown or misconfigured.
    """
    backend = config.backend
    if backend == "aws":
        if not config.aws_bucket:
            raise ValueError("storage.aws.bucket is required when backend is 'aws'")
        from camgate.storage.aws import S3ObjectStore

        return S3ObjectStore(
            bucket_name=config.aws_bucket,
            region=config.aws_region,
            endpoint_url=config.aws_endpoint_url,
        )
    elif backend == "local":
        from camgate.storage.local import LocalObjectStore

        return LocalObjectStore(config.local_root)
    else:
        raise ValueError(f"Unknown storage backend: {backend}")


__all__ = ["ObjectStore", "ObjectStream", "create_object_store"]
