from __future__ import annotations


class PosError(RuntimeError):
    """Base for every error the operator should see as a message."""


class InvalidSource(PosError):
    pass


# Fetching


class FetchError(PosError):
    pass


class FetchTimeout(FetchError):
    pass


class FetchAuthRequired(FetchError):
    pass


class FetchFailed(FetchError):
    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# Catalog


class CatalogError(PosError):
    pass


class EmptyCatalog(CatalogError):
    pass


class NoValidProducts(CatalogError):
    def __init__(self, headers: list[str], row_count: int):
        cols = ", ".join(headers) if headers else "none"
        super().__init__(
            f"No valid products found. Found {row_count} rows but none had a valid "
            f"Name and Price. Available columns: {cols}"
        )
        self.headers = list(headers)
        self.row_count = row_count


# Cart


class CartError(PosError):
    pass


class UnknownProduct(CartError):
    pass


class LineNotFound(CartError):
    pass


class OutOfStock(CartError):
    pass


class InsufficientStock(CartError):
    pass


class InvalidQuantity(CartError):
    pass


class InvalidPrice(CartError):
    pass


class EmptyCart(CartError):
    pass
