# ==============================================================================
# SERVICIO DE INVENTARIO
# ==============================================================================
# Centraliza toda la lógica de negocio relacionada con productos,
# categorías y búsqueda del catálogo.
#
# Eliminar un producto NO toca ventas históricas: las líneas conservan
# su nombre y precio snapshot.
# ==============================================================================

import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from swift_pos.exceptions import ProductNotFound, ValidationError
from swift_pos.models.entities import Product, generate_id
from swift_pos.repositories.pos_repository import PosRepository

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Servicio para gestión de inventario.

    Responsabilidades:
    - CRUD de productos con validación
    - Búsqueda por nombre o código de barras
    - Alta de categorías (el set solo crece)
    """

    def __init__(self, repository: PosRepository):
        """
        Inicializa el servicio de inventario.

        Args:
            repository: Fachada de persistencia
        """
        self.repository = repository

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_products(self) -> List[Product]:
        return self.repository.get_products()

    def get_product(self, product_id: str) -> Optional[Product]:
        """
        Obtiene un producto por su ID.

        Returns:
            El producto o None
        """
        for product in self.repository.get_products():
            if product.id == product_id:
                return product
        return None

    def search_products(
        self,
        term: str = '',
        categories: Optional[Iterable[str]] = None
    ) -> List[Product]:
        """
        Filtra el catálogo como la grilla de ventas.

        Args:
            term: Texto a buscar en nombre o código de barras (sin mayúsculas)
            categories: Categorías permitidas (vacío/None = todas)

        Returns:
            Productos que cumplen ambos filtros, en orden de catálogo
        """
        term = (term or '').strip().lower()
        selected = set(categories or [])
        return [
            p for p in self.repository.get_products()
            if (not selected or p.category in selected)
            and (term in p.name.lower() or term in p.barcode.lower())
        ]

    # =========================================================================
    # VALIDACIÓN
    # =========================================================================

    def _validate(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Valida y normaliza los datos del formulario de producto.

        Raises:
            ValidationError: Campo obligatorio vacío o valor fuera de rango
        """
        name = str(data.get('name') or '').strip()
        if not name:
            raise ValidationError("El nombre del producto es obligatorio", field='name')

        category = str(data.get('category') or '').strip()
        if category not in self.repository.get_categories():
            raise ValidationError(f"Categoría inexistente: {category!r}", field='category')

        try:
            stock_value = float(data.get('stock', 0))
        except (TypeError, ValueError):
            raise ValidationError("El stock debe ser un número entero", field='stock')
        if not math.isfinite(stock_value) or stock_value != int(stock_value) or stock_value < 0:
            raise ValidationError("El stock debe ser un entero >= 0", field='stock')

        prices = {}
        for key in ('buyingPrice', 'sellingPrice'):
            try:
                prices[key] = float(data.get(key, 0))
            except (TypeError, ValueError):
                raise ValidationError(f"Precio inválido: {data.get(key)!r}", field=key)
            if not math.isfinite(prices[key]) or prices[key] < 0:
                raise ValidationError("Los precios deben ser >= 0", field=key)

        return {
            'name': name,
            'category': category,
            'stock': int(stock_value),
            'buying_price': prices['buyingPrice'],
            'selling_price': prices['sellingPrice'],
            'size': str(data.get('size') or '').strip(),
            'color': str(data.get('color') or '').strip(),
            'barcode': str(data.get('barcode') or '').strip(),
            'supplier_id': data.get('supplierId') or None,
            'image': str(data.get('image') or ''),
        }

    # =========================================================================
    # OPERACIONES DE PRODUCTOS
    # =========================================================================

    def create_product(self, data: Dict[str, Any]) -> Product:
        """
        Crea un producto nuevo.

        Args:
            data: Campos del formulario (claves camelCase)

        Returns:
            El producto creado
        """
        product = Product(id=generate_id(), **self._validate(data))
        products = self.repository.get('products')
        products.append(product.to_dict())
        self.repository.put('products', products)
        logger.info("[INVENTARIO] Producto creado: %s (stock %d)", product.name, product.stock)
        return product

    def update_product(self, product_id: str, data: Dict[str, Any]) -> Product:
        """
        Reemplaza los campos editables de un producto existente.

        Raises:
            ProductNotFound: El ID no existe
        """
        fields = self._validate(data)
        products = self.repository.get('products')
        for index, raw in enumerate(products):
            if str(raw.get('id')) == product_id:
                product = Product(id=product_id, **fields)
                products[index] = product.to_dict()
                self.repository.put('products', products)
                logger.info("[INVENTARIO] Producto actualizado: %s", product.name)
                return product
        raise ProductNotFound(f"Producto no encontrado: {product_id}", product_id=product_id)

    def delete_product(self, product_id: str) -> None:
        products = self.repository.get('products')
        remaining = [p for p in products if str(p.get('id')) != product_id]
        if len(remaining) == len(products):
            raise ProductNotFound(f"Producto no encontrado: {product_id}", product_id=product_id)
        self.repository.put('products', remaining)
        logger.info("[INVENTARIO] Producto eliminado: %s", product_id)

    # =========================================================================
    # CATEGORÍAS
    # =========================================================================

    def list_categories(self) -> List[str]:
        return self.repository.get_categories()

    def add_category(self, name: str) -> List[str]:
        """
        Agrega una categoría al set.

        Args:
            name: Nombre (se recortan espacios)

        Returns:
            Las categorías actualizadas

        Raises:
            ValidationError: Nombre vacío o categoría ya existente
        """
        category = (name or '').strip()
        if not category:
            raise ValidationError("Ingrese un nombre de categoría", field='name')
        categories = self.repository.get_categories()
        if category in categories:
            raise ValidationError(f"La categoría ya existe: {category}", field='name')
        categories.append(category)
        self.repository.save_categories(categories)
        return categories
