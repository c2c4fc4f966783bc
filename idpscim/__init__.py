"""Hash, compare and store identity-provider users and groups, and apply changes through a SCIM client."""

__version__ = "0.1.0"
__all__ = ["hashing", "model", "operations", "repository", "scim"]