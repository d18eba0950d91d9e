"""Pydantic models for the iFLYTEK V2 wire format.

The order result is JSON-in-JSON: every ``lattice`` entry carries its
recognition as a *string* under ``json_1best`` which decodes to::

    {"st": {"bg": "0", "ed": "1500",
            "rt": [{"ws": [{"cw": [{"w": "你"}]}, {"cw": [{"w": "好"}]}]}]}}

Offsets arrive as strings and are read up to the first non-digit, so
"1500.0" is 1500; anything without a leading integer becomes 0.
"""
import re
from typing import Any, Optional

from pydantic import BaseModel, Field, Json, field_validator

LEADING_INT = re.compile(r"\s*[+-]?\d+")


class VendorResponse(BaseModel):
    code: str
    desc_info: str = Field(default="", alias="descInfo")


class UploadContent(BaseModel):
    order_id: str = Field(alias="orderId")
    task_estimate_time: Optional[int] = Field(default=None, alias="taskEstimateTime")


class UploadResponse(VendorResponse):
    content: Optional[UploadContent] = None


class OrderInfo(BaseModel):
    status: int
    fail_type: Optional[int] = Field(default=None, alias="failType")
    order_id: Optional[str] = Field(default=None, alias="orderId")
    original_duration: Optional[int] = Field(default=None, alias="originalDuration")


class QueryContent(BaseModel):
    order_info: OrderInfo = Field(alias="orderInfo")
    order_result: Optional[str] = Field(default=None, alias="orderResult")
    task_estimate_time: Optional[int] = Field(default=None, alias="taskEstimateTime")


class QueryResponse(VendorResponse):
    content: Optional[QueryContent] = None


# ── order result lattice ─────────────────────────────────────────────────────


class Candidate(BaseModel):
    w: str = ""

    @field_validator("w", mode="before")
    @classmethod
    def _text_or_blank(cls, value: Any) -> str:
        match value:
            case str():
                return value
            case _:
                return ""


class WordPiece(BaseModel):
    cw: list[Candidate] = Field(default_factory=list)

    @property
    def best(self) -> str:
        return self.cw[0].w if self.cw else ""


class RecognitionGroup(BaseModel):
    ws: list[WordPiece] = Field(default_factory=list)


class Sentence(BaseModel):
    bg: int = 0
    ed: int = 0
    rt: list[RecognitionGroup] = Field(default_factory=list)

    @field_validator("bg", "ed", mode="before")
    @classmethod
    def _offset_or_zero(cls, value: Any) -> int:
        match value:
            case bool():
                return 0
            case int():
                return value
            case float():
                return int(value)
            case str() if (found := LEADING_INT.match(value)):
                return int(found.group())
            case _:
                return 0


class OneBest(BaseModel):
    st: Sentence


class LatticeEntry(BaseModel):
    json_1best: Json[OneBest]


class OrderResult(BaseModel):
    lattice: list[Any]
