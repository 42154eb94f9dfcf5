"""Page extraction and text shortening models."""

from pydantic import BaseModel


class FetchUrlRequest(BaseModel):
    url: str = ""


class ExtractedPage(BaseModel):
    text: str
    url: str


class ShortenRequest(BaseModel):
    text: str = ""


class ShortenResponse(BaseModel):
    original: str
    result: str
