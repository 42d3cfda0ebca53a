import unittest

from fastapi import HTTPException

from catkeeper.errors import (
    CatKeeperError,
    DuplicateNameError,
    InvalidInputError,
    NotFoundError,
    to_http_exception,
)


class ErrorMappingTests(unittest.TestCase):
    def test_status_codes(self):
        cases = [
            (NotFoundError("Cat Tom not found"), 404),
            (InvalidInputError("Cat name must not be empty"), 400),
            (DuplicateNameError("Cat Tom already exists"), 409),
            (CatKeeperError("boom"), 500),
        ]
        for error, expected in cases:
            with self.subTest(error=type(error).__name__):
                exc = to_http_exception(error)
                self.assertIsInstance(exc, HTTPException)
                self.assertEqual(exc.status_code, expected)
                self.assertEqual(exc.detail, error.message)

    def test_duplicate_is_invalid_input(self):
        self.assertTrue(issubclass(DuplicateNameError, InvalidInputError))
        self.assertEqual(str(NotFoundError("Cat Tom not found")), "Cat Tom not found")


if __name__ == "__main__":
    unittest.main()
