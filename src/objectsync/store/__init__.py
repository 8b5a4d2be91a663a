"""
ObjectSync store module.

Object store client interface and its boto3 implementation.
"""

from objectsync.store.base import ListPage, ObjectStore, StoredObject
from objectsync.store.s3 import S3ObjectStore

__all__ = ["ListPage", "ObjectStore", "StoredObject", "S3ObjectStore"]
