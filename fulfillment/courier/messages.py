"""
Assignment request schema, validated at the worker boundary.

Two body shapes are accepted and normalised into one AssignmentRequest:

    Native (versioned):
        {"schema_version": 1, "book_id": "B1", "quantity": 3, "resume_token": "..."}
        (camelCase ``bookId`` / ``resumeToken`` are accepted as well)

    Orchestrator envelope (wait-for-task-token integration):
        {"Input": {"bookId": "B1", "quantity": 3}, "Token": "..."}

Parsing is split in two so the worker can still resume the saga when the
token is readable but the rest of the message is not.
"""

import json
from typing import Any

from fulfillment.core.exceptions import InvalidInput, MalformedAssignmentRequest
from fulfillment.core.types import (
    ASSIGNMENT_SCHEMA_VERSION,
    SUPPORTED_ASSIGNMENT_SCHEMAS,
    AssignmentRequest,
    to_quantity,
)

_TOKEN_FIELDS = ("resume_token", "resumeToken", "Token")
_BOOK_FIELDS = ("book_id", "bookId")


def _first(payload: dict[str, Any], fields: tuple[str, ...]) -> Any:
    for field in fields:
        if field in payload:
            return payload[field]
    return None


def decode_body(body: Any) -> dict[str, Any]:
    """
    Decode a queue message body into a dict.

    Raises:
        MalformedAssignmentRequest: Body is not a JSON object
    """
    if isinstance(body, dict):
        return body

    if isinstance(body, bytes | bytearray):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as e:
            msg = f"Assignment request body is not UTF-8: {e}"
            raise MalformedAssignmentRequest(msg, body) from e

    if not isinstance(body, str):
        msg = f"Assignment request body must be JSON text, got {type(body).__name__}"
        raise MalformedAssignmentRequest(msg, body)

    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        msg = f"Assignment request body is not valid JSON: {e}"
        raise MalformedAssignmentRequest(msg, body) from e

    if not isinstance(payload, dict):
        msg = f"Assignment request body must be a JSON object, got {type(payload).__name__}"
        raise MalformedAssignmentRequest(msg, body)

    return payload


def extract_resume_token(payload: dict[str, Any]) -> str:
    """
    Pull the resume token out of a decoded body.

    Raises:
        MalformedAssignmentRequest: No usable token
    """
    token = _first(payload, _TOKEN_FIELDS)
    if not isinstance(token, str) or not token:
        msg = "Assignment request carries no resume token"
        raise MalformedAssignmentRequest(msg, payload)
    return token


def parse_assignment_request(payload: dict[str, Any], resume_token: str) -> AssignmentRequest:
    """
    Validate the non-token part of a decoded body.

    Raises:
        InvalidInput: Unsupported schema version, missing book id or bad quantity
    """
    schema_version = payload.get("schema_version", ASSIGNMENT_SCHEMA_VERSION)
    if (
        isinstance(schema_version, bool)
        or not isinstance(schema_version, int)
        or schema_version not in SUPPORTED_ASSIGNMENT_SCHEMAS
    ):
        msg = f"Unsupported assignment schema version: {schema_version!r}"
        raise InvalidInput(msg, field="schema_version")

    order = payload.get("Input", payload)
    if not isinstance(order, dict):
        msg = "Assignment request Input must be an object"
        raise InvalidInput(msg, field="Input")

    book_id = _first(order, _BOOK_FIELDS)
    if not isinstance(book_id, str) or not book_id:
        msg = f"Assignment request has no valid book id: {book_id!r}"
        raise InvalidInput(msg, field="book_id")

    quantity = to_quantity(order.get("quantity"))
    if quantity == 0:
        msg = "Assignment request quantity must be > 0"
        raise InvalidInput(msg, field="quantity")

    return AssignmentRequest(
        book_id=book_id,
        quantity=quantity,
        resume_token=resume_token,
        schema_version=schema_version,
    )
