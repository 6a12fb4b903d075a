"""Category and product services over their repositories."""

from __future__ import annotations

from typing import Any, Protocol


class CategoryNotFoundError(LookupError):
    def __init__(self, message: str = "categoría no encontrada") -> None:
        super().__init__(message)


class CategoryNameExistsError(ValueError):
    def __init__(self, message: str = "ya existe una categoría con ese nombre") -> None:
        super().__init__(message)


class ProductNotFoundError(LookupError):
    def __init__(self, message: str = "producto no encontrado") -> None:
        super().__init__(message)


class ProductNameExistsError(ValueError):
    def __init__(self, message: str = "ya existe un producto con ese nombre") -> None:
        super().__init__(message)


class _CategoryRepository(Protocol):
    def create(self, category: Any) -> None: ...
    def find_by_id(self, category_id: str) -> Any: ...
    def find_all(self) -> list[Any]: ...
    def find_active(self) -> list[Any]: ...
    def find_with_product_count(self) -> list[Any]: ...
    def update(self, category: Any) -> None: ...
    def delete(self, category_id: str) -> None: ...


class _ProductRepository(Protocol):
    def create(self, product: Any) -> None: ...
    def find_by_id(self, product_id: str) -> Any: ...
    def find_all(self) -> list[Any]: ...
    def find_active(self) -> list[Any]: ...
    def update(self, product: Any) -> None: ...
    def delete(self, product_id: str) -> None: ...


class CategoryService:
    """Business operations on categories."""

    def __init__(self, repo: _CategoryRepository) -> None:
        self._repo = repo

    def create(self, category: Any) -> None:
        self._repo.create(category)

    def get_by_id(self, category_id: str) -> Any:
        return self._repo.find_by_id(category_id)

    def get_all(self) -> list[Any]:
        return self._repo.find_all()

    def get_active(self) -> list[Any]:
        return self._repo.find_active()

    def get_with_product_count(self) -> list[Any]:
        """Active categories together with how many products each has."""
        return self._repo.find_with_product_count()

    def update(self, category: Any) -> None:
        self._repo.update(category)

    def delete(self, category_id: str) -> None:
        self._repo.delete(category_id)


class ProductService:
    """Business operations on products."""

    def __init__(self, repo: _ProductRepository) -> None:
        self._repo = repo

    def create(self, product: Any) -> None:
        self._repo.create(product)

    def get_by_id(self, product_id: str) -> Any:
        return self._repo.find_by_id(product_id)

    def get_all(self) -> list[Any]:
        return self._repo.find_all()

    def get_active(self) -> list[Any]:
        return self._repo.find_active()

    def update(self, product: Any) -> None:
        self._repo.update(product)

    def delete(self, product_id: str) -> None:
        self._repo.delete(product_id)