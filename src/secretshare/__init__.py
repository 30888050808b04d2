"""secretshare: share grant persistence for a secrets service.

One logical share (secret, owner, targets, expiry) is stored as one grant
row per target and regrouped into logical shares on read.
"""

__version__ = "0.1.0"

from secretshare.config import RepositoryConfig
from secretshare.db import create_engine, init_schema, make_session_factory
from secretshare.exceptions import (
    ConstraintViolationError,
    InvalidInputError,
    NotFoundError,
    SecretShareError,
    StorageError,
)
from secretshare.fanin import decode
from secretshare.fanout import encode
from secretshare.protocols import SecretLookup, UserLookup
from secretshare.repository import GrantRepository
from secretshare.service import ShareService
from secretshare.types import GrantRow, ListSharesResult, Share, ShareResult

__all__ = [
    "ConstraintViolationError",
    "GrantRepository",
    "GrantRow",
    "InvalidInputError",
    "ListSharesResult",
    "NotFoundError",
    "RepositoryConfig",
    "SecretLookup",
    "SecretShareError",
    "Share",
    "ShareResult",
    "ShareService",
    "StorageError",
    "UserLookup",
    "__version__",
    "create_engine",
    "decode",
    "encode",
    "init_schema",
    "make_session_factory",
]
