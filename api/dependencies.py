"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException

from finanzen import mock_sheets_client, sheets_client
from finanzen.auth import GoogleAuth, MockAuth, Token
from finanzen.config import use_mock
from finanzen.gemini_client import GeminiClient, MockGeminiClient


def get_narrative_client():
    """Provide the text-completion client (mock when FINANZEN_USE_MOCK is set)"""
    return MockGeminiClient() if use_mock() else GeminiClient()


@lru_cache
def get_auth():
    """One OAuth helper per process; it remembers pending login states"""
    return MockAuth() if use_mock() else GoogleAuth()


def get_access_token(authorization: Optional[str] = Header(default=None)) -> Token:
    """Extract the Google access token from the ``Authorization: Bearer`` header"""
    scheme, _, value = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        raise HTTPException(status_code=401, detail="Login with Google required")
    return Token(access_token=value.strip())


def get_sheets_client(token: Token = Depends(get_access_token)):
    """Provide a gspread client authorized as the logged-in user"""
    if use_mock():
        return mock_sheets_client.get_client(token)
    return sheets_client.get_client(token)
