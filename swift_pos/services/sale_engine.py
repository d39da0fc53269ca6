# ==============================================================================
# MOTOR DE VENTAS - Carrito y confirmación de venta
# ==============================================================================
# Dueño exclusivo del carrito en memoria. Calcula descuentos y totales,
# valida contra el catálogo y confirma la venta.
#
# REGLA DE ORO: validar todo, después escribir. Nunca escribir y compensar.
#
# CONFIRMACIÓN (commit):
#   1. Carrito vacío → EmptyCart
#   2. Total de la orden (descuento de orden acotado a 0-100)
#   3. Pago menor al total → InsufficientPayment (sin tocar almacenamiento)
#   4. Relee el catálogo y descuenta stock por línea
#   5. Ganancia con el precio de compra VIGENTE al confirmar
#   6. Guarda catálogo + venta nueva en UNA escritura atómica (put_many)
#   7. Limpia carrito y parámetros
#
# Todo el commit (pasos 1-7) corre bajo repository.locked(). Las
# operaciones del carrito toman el mismo candado, así que una línea
# agregada desde otro hilo nunca cae entre la escritura y la limpieza.
# ==============================================================================

import logging
import math
from collections import OrderedDict
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from swift_pos.exceptions import (
    EmptyCart,
    InsufficientPayment,
    InsufficientStock,
    InvalidDiscount,
    InvalidQuantity,
    OutOfStock,
    ProductNotFound,
)
from swift_pos.models.entities import (
    CUSTOMER_WALK_IN,
    CartLine,
    Product,
    Sale,
    copy_lines,
    generate_id,
)
from swift_pos.repositories.pos_repository import PosRepository
from swift_pos.services.contacts_service import resolve_customer_name

logger = logging.getLogger(__name__)


def clamp_percent(value: Any) -> float:
    """
    Acota un porcentaje a [0, 100]. Valores no numéricos valen 0.

    Args:
        value: Porcentaje ingresado

    Returns:
        Porcentaje acotado
    """
    try:
        percent = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(percent):
        return 0.0
    return min(100.0, max(0.0, percent))


def _validate_discount(value: Any) -> float:
    try:
        discount = float(value)
    except (TypeError, ValueError):
        raise InvalidDiscount(f"Descuento inválido: {value!r}", discount=value)
    if math.isnan(discount) or discount < 0 or discount > 100:
        raise InvalidDiscount(
            f"El descuento debe estar entre 0 y 100 (recibido: {value})",
            discount=value
        )
    return discount


def _validate_quantity(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidQuantity(f"Cantidad inválida: {value!r}", quantity=value)
    try:
        quantity = float(value)
    except (TypeError, ValueError):
        raise InvalidQuantity(f"Cantidad inválida: {value!r}", quantity=value)
    if not math.isfinite(quantity) or quantity != int(quantity) or quantity <= 0:
        raise InvalidQuantity(
            f"La cantidad debe ser un entero mayor a 0 (recibido: {value})",
            quantity=value
        )
    return int(quantity)


class SaleEngine:
    """
    Motor de transacciones de venta.

    Responsabilidades:
    - Agregar/editar/eliminar líneas del carrito
    - Calcular subtotal y total con descuento de orden
    - Validar stock y pago
    - Confirmar la venta de forma atómica

    El estado (carrito, descuento de orden, monto entregado) vive en la
    instancia y se reinicia tras cada venta o al limpiar. Cada cambio
    de estado se hace bajo el candado del almacenamiento (reentrante).
    """

    def __init__(
        self,
        repository: PosRepository,
        strict_stock: bool = False,
        clock: Callable[[], datetime] = None
    ):
        """
        Inicializa el motor.

        Args:
            repository: Fachada de persistencia
            strict_stock: Re-validar stock de todas las líneas al confirmar
            clock: Función que retorna la hora actual (inyectable en tests)
        """
        self.repository = repository
        self.strict_stock = strict_stock
        self._clock = clock or datetime.now
        self.cart: List[CartLine] = []
        self.order_discount_percent: float = 0.0
        self.tendered_amount: float = 0.0

    # =========================================================================
    # CONSULTAS AUXILIARES
    # =========================================================================

    def _find_product(self, product_id: str) -> Optional[Product]:
        for product in self.repository.get_products():
            if product.id == product_id:
                return product
        return None

    def _find_line(self, line_id: str) -> Optional[CartLine]:
        for line in self.cart:
            if line.id == line_id:
                return line
        return None

    # =========================================================================
    # OPERACIONES DEL CARRITO
    # =========================================================================

    def add_or_increment(self, product_id: str, default_discount_percent: float = 0) -> CartLine:
        """
        Agrega un producto al carrito o incrementa su cantidad en 1.

        Una línea nueva toma el nombre y precio de venta ACTUALES como
        snapshot. Una línea existente conserva su precio y descuento.

        Args:
            product_id: ID del producto
            default_discount_percent: Descuento para una línea nueva (0-100)

        Returns:
            La línea agregada o actualizada

        Raises:
            ProductNotFound: El producto no existe en el catálogo
            InvalidDiscount: Descuento fuera de [0, 100]
            OutOfStock: El producto tiene stock < 1
        """
        discount = _validate_discount(default_discount_percent)

        with self.repository.locked():
            product = self._find_product(product_id)
            if product is None:
                raise ProductNotFound(f"Producto no encontrado: {product_id}", product_id=product_id)

            if product.stock < 1:
                raise OutOfStock(
                    f"Stock insuficiente para {product.name}",
                    product_id=product_id,
                    available=product.stock
                )

            for line in self.cart:
                if line.product_id == product_id:
                    line.quantity += 1
                    line.recompute()
                    return line

            line = CartLine(
                id=generate_id(),
                product_id=product.id,
                name=product.name,
                price=product.selling_price,
                quantity=1,
                discount=discount,
            )
            self.cart.append(line)
            return line

    def remove_line(self, line_id: str) -> bool:
        """
        Elimina una línea del carrito. Si no existe no hace nada.

        Returns:
            True si se eliminó una línea
        """
        with self.repository.locked():
            before = len(self.cart)
            self.cart = [line for line in self.cart if line.id != line_id]
            return len(self.cart) < before

    def update_line(
        self,
        line_id: str,
        new_quantity: Any,
        new_discount_percent: Any
    ) -> Optional[CartLine]:
        """
        Cambia cantidad y descuento de una línea.

        El total se recalcula desde el precio snapshot original. Si alguna
        validación falla la línea queda intacta.

        Args:
            line_id: ID de la línea
            new_quantity: Nueva cantidad (> 0)
            new_discount_percent: Nuevo descuento (0-100)

        Returns:
            La línea actualizada, o None si la línea no existe

        Raises:
            InvalidQuantity: Cantidad <= 0 o no entera
            InvalidDiscount: Descuento fuera de [0, 100]
            InsufficientStock: Cantidad mayor al stock actual del producto
        """
        with self.repository.locked():
            line = self._find_line(line_id)
            if line is None:
                return None

            quantity = _validate_quantity(new_quantity)
            discount = _validate_discount(new_discount_percent)

            # Producto eliminado del catálogo: no hay stock contra qué validar
            product = self._find_product(line.product_id)
            if product is not None and product.stock < quantity:
                raise InsufficientStock(
                    f"Stock insuficiente. Solo hay {product.stock} disponibles",
                    product_id=line.product_id,
                    requested=quantity,
                    available=product.stock
                )

            line.quantity = quantity
            line.discount = discount
            line.recompute()
            return line

    def clear(self) -> None:
        """Vacía el carrito y reinicia descuento de orden y monto entregado."""
        with self.repository.locked():
            self.cart = []
            self.order_discount_percent = 0.0
            self.tendered_amount = 0.0

    # =========================================================================
    # PARÁMETROS DE LA ORDEN
    # =========================================================================

    def set_order_discount(self, percent: Any) -> float:
        """
        Guarda el descuento de orden tal como llega.
        Se acota a [0, 100] recién al usarlo.
        """
        try:
            value = float(percent)
        except (TypeError, ValueError):
            value = 0.0
        with self.repository.locked():
            self.order_discount_percent = value
        return value

    def set_tendered_amount(self, amount: Any) -> float:
        """Guarda el monto entregado por el cliente."""
        try:
            value = float(amount)
        except (TypeError, ValueError):
            value = 0.0
        with self.repository.locked():
            self.tendered_amount = value
        return value

    @property
    def effective_order_discount(self) -> float:
        """Descuento de orden acotado a [0, 100]."""
        return clamp_percent(self.order_discount_percent)

    # =========================================================================
    # TOTALES
    # =========================================================================

    def compute_cart_subtotal(self) -> float:
        """Suma de totales de línea (sin descuento de orden)."""
        return sum(line.total for line in self.cart)

    def compute_order_total(self) -> float:
        """Subtotal × (1 − descuento de orden/100)."""
        return self.compute_cart_subtotal() * (1 - self.effective_order_discount / 100)

    def suggested_tendered(self) -> int:
        """Total de la orden redondeado al entero más cercano (mitades hacia arriba)."""
        return int(math.floor(self.compute_order_total() + 0.5))

    def get_state(self) -> Dict[str, Any]:
        """
        Estado del carrito para la capa de presentación.

        Returns:
            Dict con items, totales, descuento y vuelto
        """
        total = self.compute_order_total()
        return {
            'items': [line.to_dict() for line in self.cart],
            'items_count': len(self.cart),
            'total_items': sum(line.quantity for line in self.cart),
            'subtotal': self.compute_cart_subtotal(),
            'order_discount': self.effective_order_discount,
            'total': total,
            'suggested_tendered': self.suggested_tendered(),
            'tendered': self.tendered_amount,
            'change': max(0.0, self.tendered_amount - total),
        }

    # =========================================================================
    # CONFIRMACIÓN DE VENTA
    # =========================================================================

    def _check_stock_strict(self, products_by_id: Dict[str, Dict[str, Any]]) -> None:
        requested = OrderedDict()
        for line in self.cart:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

        for product_id, quantity in requested.items():
            raw = products_by_id.get(product_id)
            if raw is None:
                raise ProductNotFound(
                    f"El producto {product_id} ya no existe en el catálogo",
                    product_id=product_id
                )
            product = Product.from_dict(raw)
            if product.stock < quantity:
                raise InsufficientStock(
                    f"Stock insuficiente para {product.name}. "
                    f"Solicitado: {quantity}, Disponible: {product.stock}",
                    product_id=product_id,
                    requested=quantity,
                    available=product.stock
                )

    def commit(
        self,
        customer_type: str = CUSTOMER_WALK_IN,
        payment_method: str = 'cash',
        tendered_amount: Any = None,
        notes: str = ''
    ) -> Sale:
        """
        Confirma la venta del carrito actual.

        Args:
            customer_type: 'walk-in', 'online' o ID de cliente
            payment_method: Método de pago
            tendered_amount: Monto entregado (None usa el guardado en el motor)
            notes: Notas de la venta

        Returns:
            La venta creada (inmutable)

        Raises:
            EmptyCart: No hay líneas
            InsufficientPayment: Monto entregado menor al total
            InsufficientStock / ProductNotFound: Solo en modo estricto
        """
        with self.repository.locked():
            if not self.cart:
                raise EmptyCart("El carrito está vacío")

            order_discount = self.effective_order_discount
            total = self.compute_order_total()

            if tendered_amount is None:
                tendered_amount = self.tendered_amount
            try:
                amount_paid = float(tendered_amount)
            except (TypeError, ValueError):
                amount_paid = float('nan')
            if math.isnan(amount_paid) or amount_paid < total:
                raise InsufficientPayment(
                    f"El monto pagado debe ser al menos {total:.2f}",
                    total=total,
                    tendered=tendered_amount
                )

            products = self.repository.get('products')
            products_by_id = {str(p.get('id')): p for p in products}

            if self.strict_stock:
                self._check_stock_strict(products_by_id)

            profit = 0.0
            for line in self.cart:
                raw = products_by_id.get(line.product_id)
                if raw is None:
                    # Producto eliminado: sin costo conocido ni stock que descontar
                    profit += line.total
                    continue
                product = Product.from_dict(raw)
                new_stock = product.stock - line.quantity
                if new_stock < 0:
                    logger.warning(
                        "[STOCK] %s: se vendieron %d con stock %d, se deja en 0",
                        product.name, line.quantity, product.stock
                    )
                    new_stock = 0
                raw['stock'] = new_stock
                profit += line.total - product.buying_price * line.quantity

            now = self._clock()
            sale = Sale(
                id=generate_id(),
                date=now.strftime('%Y-%m-%d'),
                time=now.strftime('%H:%M:%S'),
                customer_type=customer_type,
                customer_name=resolve_customer_name(
                    customer_type, self.repository.get_customers()
                ),
                payment_method=payment_method,
                items=copy_lines(self.cart),
                total=total,
                profit=profit,
                amount_paid=amount_paid,
                order_discount=order_discount,
                change=amount_paid - total,
                notes=(notes or '').strip(),
            )

            sales = self.repository.get('sales')
            sales.append(sale.to_dict())
            self.repository.put_many({'products': products, 'sales': sales})
            self.clear()

        logger.info(
            "[VENTA] Venta %s confirmada - Total: %.2f - %d líneas - Pago: %s",
            sale.id, sale.total, len(sale.items), payment_method
        )
        return sale
