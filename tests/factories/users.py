"""Session users for the remote store tests."""

from src.strategist.core.auth import SessionUser

OWNER_ID = "user-owner"
OTHER_ID = "user-other"

OWNER = SessionUser(id=OWNER_ID, email="owner@example.com")
