"""
Error types raised by the FHE gas estimation engine.

FheGasError
 ├─ InvalidParameter      : negative or malformed numeric input
 ├─ MismatchedInputLength : operations/counts arrays of different length
 ├─ UnknownOperation      : registry miss or zero base cost
 └─ ArithmeticOverflow    : accumulation left the uint256 range
"""

from typing import Optional


class FheGasError(Exception):
    """Base class for estimation engine errors."""

    code: str = "FheGasError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def __str__(self) -> str:
        return self.message


class InvalidParameter(FheGasError):
    code: str = "InvalidParameter"


class MismatchedInputLength(FheGasError):
    code: str = "MismatchedInputLength"

    def __init__(self, operations: int, counts: int) -> None:
        super().__init__(f"Got {operations} operation(s) but {counts} count(s)")
        self.operations = operations
        self.counts = counts


class UnknownOperation(FheGasError):
    code: str = "UnknownOperation"

    def __init__(self, operation: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Operation '{operation}' is not registered")
        self.operation = operation


class ArithmeticOverflow(FheGasError):
    code: str = "ArithmeticOverflow"
