import unittest
import uuid
from unittest.mock import AsyncMock

from app.core.errors import InvalidIdentifier, NotFound
from app.core.identifiers import validate_existing, validate_identifier
from helpers import run_async

VALID = "123e4567-e89b-12d3-a456-426614174000"


class TestValidateIdentifier(unittest.TestCase):
    def test_accepts_canonical_uuid(self):
        self.assertEqual(validate_identifier(VALID), uuid.UUID(VALID))

    def test_accepts_uuid_instance(self):
        ident = uuid.uuid4()
        self.assertIs(validate_identifier(ident), ident)

    def test_strips_surrounding_whitespace(self):
        self.assertEqual(validate_identifier(f"  {VALID} "), uuid.UUID(VALID))

    def test_rejects_missing(self):
        with self.assertRaises(InvalidIdentifier) as ctx:
            validate_identifier(None, "video_id")
        self.assertEqual(ctx.exception.detail, "video_id is required")

    def test_rejects_blank(self):
        with self.assertRaises(InvalidIdentifier):
            validate_identifier("   ", "video_id")

    def test_rejects_malformed(self):
        for raw in ("abc", "123", "not-a-uuid-at-all", VALID[:-1]):
            with self.assertRaises(InvalidIdentifier) as ctx:
                validate_identifier(raw, "comment_id")
            self.assertEqual(ctx.exception.detail, "Invalid comment_id")
            self.assertEqual(ctx.exception.status_code, 400)


class TestValidateExisting(unittest.TestCase):
    def test_returns_identifier_when_found(self):
        lookup = AsyncMock(return_value=True)
        self.assertEqual(run_async(validate_existing(VALID, lookup, "video_id")), uuid.UUID(VALID))
        lookup.assert_awaited_once_with(uuid.UUID(VALID))

    def test_not_found_names_entity(self):
        lookup = AsyncMock(return_value=False)
        with self.assertRaises(NotFound) as ctx:
            run_async(validate_existing(VALID, lookup, "video_id"))
        self.assertEqual(ctx.exception.detail, "Video not found")

    def test_malformed_never_reaches_lookup(self):
        lookup = AsyncMock(return_value=True)
        with self.assertRaises(InvalidIdentifier):
            run_async(validate_existing("abc", lookup, "tweet_id"))
        lookup.assert_not_awaited()
