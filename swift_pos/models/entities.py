# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio.
# Diseñadas para ser independientes del mecanismo de persistencia.
#
# FORMATO PERSISTIDO: las claves usan camelCase (buyingPrice, productId...)
# para mantener compatibilidad con los respaldos exportados por la app web.
# ==============================================================================

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# ==============================================================================
# CONSTANTES - Valores reservados y marcadores
# ==============================================================================

# Nombre mostrado cuando una referencia (producto, cliente) ya no existe
UNKNOWN_NAME = 'Unknown'

# Nombre mostrado cuando un proveedor referenciado ya no existe
NOT_AVAILABLE = 'N/A'

# Tipos de cliente reservados (cualquier otro valor es un ID de cliente)
CUSTOMER_WALK_IN = 'walk-in'
CUSTOMER_ONLINE = 'online'
RESERVED_CUSTOMER_NAMES = {
    CUSTOMER_WALK_IN: 'Walk-in Customer',
    CUSTOMER_ONLINE: 'Online Customer',
}

# Categorías de gasto con significado especial en el dashboard
EXPENSE_SUPPLIER_PAYMENT = 'Supplier Payment'
EXPENSE_CREDIT_PAYMENT = 'Credit Payment'

# Categorías de producto iniciales
DEFAULT_CATEGORIES = ['Tops', 'Dresses', 'Pants', 'Shoes', 'Accessories']

# Umbral fijo de stock bajo
LOW_STOCK_THRESHOLD = 10


def generate_id() -> str:
    """Genera un ID único y estable para cualquier entidad."""
    return uuid.uuid4().hex


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def calculate_line_total(price: float, quantity: int, discount: float) -> float:
    """
    Calcula el total de una línea con descuento porcentual.

    Args:
        price: Precio unitario (snapshot)
        quantity: Cantidad
        discount: Descuento en porcentaje (0-100)

    Returns:
        price × (1 − discount/100) × quantity, sin redondear
    """
    discounted_price = price * (1 - discount / 100)
    return discounted_price * quantity


# ==============================================================================
# ENTIDADES DE INVENTARIO
# ==============================================================================

@dataclass
class Product:
    """
    Producto del catálogo.

    Attributes:
        id: Identificador único y estable
        name: Nombre del producto
        category: Categoría (debe existir en el set de categorías)
        stock: Unidades en inventario (>= 0)
        buying_price: Costo de compra
        selling_price: Precio de venta
        size: Talla (opcional)
        color: Color (opcional)
        barcode: Código de barras (opcional)
        supplier_id: Referencia débil al proveedor (opcional)
        image: Referencia a imagen (opcional)
    """
    id: str
    name: str
    category: str = ''
    stock: int = 0
    buying_price: float = 0.0
    selling_price: float = 0.0
    size: str = ''
    color: str = ''
    barcode: str = ''
    supplier_id: Optional[str] = None
    image: str = ''

    @property
    def inventory_value(self) -> float:
        """Valor del stock a precio de compra."""
        return self.buying_price * self.stock

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'stock': self.stock,
            'buyingPrice': self.buying_price,
            'sellingPrice': self.selling_price,
            'size': self.size,
            'color': self.color,
            'barcode': self.barcode,
            'supplierId': self.supplier_id,
            'image': self.image,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        """Crea instancia desde diccionario."""
        return cls(
            id=str(data.get('id', '')),
            name=data.get('name', ''),
            category=data.get('category', ''),
            stock=_to_int(data.get('stock', 0)),
            buying_price=_to_float(data.get('buyingPrice', 0)),
            selling_price=_to_float(data.get('sellingPrice', 0)),
            size=data.get('size') or '',
            color=data.get('color') or '',
            barcode=data.get('barcode') or '',
            supplier_id=data.get('supplierId') or None,
            image=data.get('image') or '',
        )


# ==============================================================================
# ENTIDADES DE CARRITO Y VENTA
# ==============================================================================

@dataclass
class CartLine:
    """
    Línea del carrito. Efímera hasta que la venta se confirma.

    name y price son snapshots tomados al agregar: editar el precio del
    producto después no cambia una línea abierta.

    Attributes:
        id: ID de la línea
        product_id: Referencia al producto
        name: Nombre al momento de agregar
        price: Precio de venta al momento de agregar
        quantity: Cantidad (> 0)
        discount: Descuento porcentual (0-100)
        total: price × quantity × (1 − discount/100)
    """
    id: str
    product_id: str
    name: str
    price: float
    quantity: int = 1
    discount: float = 0.0
    total: float = 0.0

    def __post_init__(self):
        if not self.total:
            self.recompute()

    def recompute(self) -> float:
        """Recalcula el total desde el precio snapshot."""
        self.total = calculate_line_total(self.price, self.quantity, self.discount)
        return self.total

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'productId': self.product_id,
            'name': self.name,
            'price': self.price,
            'quantity': self.quantity,
            'discount': self.discount,
            'total': self.total,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartLine':
        """Crea instancia desde diccionario."""
        return cls(
            id=str(data.get('id', '')),
            product_id=str(data.get('productId', '')),
            name=data.get('name', ''),
            price=_to_float(data.get('price', 0)),
            quantity=_to_int(data.get('quantity', 0)),
            discount=_to_float(data.get('discount', 0)),
            total=_to_float(data.get('total', 0)),
        )


@dataclass(frozen=True)
class Sale:
    """
    Venta confirmada. Inmutable una vez creada.

    Invariante: total == sum(line.total) × (1 − order_discount/100),
    calculado una sola vez al confirmar.

    Attributes:
        id: ID de la venta
        date: Fecha ISO (YYYY-MM-DD)
        time: Hora (HH:MM:SS)
        customer_type: 'walk-in', 'online' o ID de cliente
        customer_name: Snapshot del nombre del cliente al confirmar
        payment_method: Método de pago
        items: Copia de las líneas del carrito
        total: Total tras descuento de orden
        profit: Ganancia con el costo de compra vigente al confirmar
        amount_paid: Monto entregado
        order_discount: Descuento de orden aplicado (ya acotado a 0-100)
        change: amount_paid − total
        notes: Notas de la venta
    """
    id: str
    date: str
    time: str = ''
    customer_type: str = CUSTOMER_WALK_IN
    customer_name: str = ''
    payment_method: str = 'cash'
    items: tuple = ()
    total: float = 0.0
    profit: float = 0.0
    amount_paid: float = 0.0
    order_discount: float = 0.0
    change: float = 0.0
    notes: str = ''

    @property
    def items_count(self) -> int:
        """Unidades vendidas en la venta."""
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'date': self.date,
            'time': self.time,
            'customerType': self.customer_type,
            'customerName': self.customer_name,
            'paymentMethod': self.payment_method,
            'items': [item.to_dict() for item in self.items],
            'total': self.total,
            'profit': self.profit,
            'amountPaid': self.amount_paid,
            'orderDiscount': self.order_discount,
            'change': self.change,
            'notes': self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sale':
        """Crea instancia desde diccionario."""
        items = tuple(CartLine.from_dict(i) for i in data.get('items', []) or [])
        return cls(
            id=str(data.get('id', '')),
            date=data.get('date', ''),
            time=data.get('time', ''),
            customer_type=data.get('customerType', CUSTOMER_WALK_IN),
            customer_name=data.get('customerName', ''),
            payment_method=data.get('paymentMethod', 'cash'),
            items=items,
            total=_to_float(data.get('total', 0)),
            profit=_to_float(data.get('profit', 0)),
            amount_paid=_to_float(data.get('amountPaid', 0)),
            order_discount=_to_float(data.get('orderDiscount', 0)),
            change=_to_float(data.get('change', 0)),
            notes=data.get('notes') or '',
        )


# ==============================================================================
# ENTIDADES DE CONTACTOS Y GASTOS
# ==============================================================================

@dataclass
class Contact:
    """Datos comunes de proveedores y clientes."""
    id: str
    name: str
    phone: str = ''
    email: str = ''
    address: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'phone': self.phone,
            'email': self.email,
            'address': self.address,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        return cls(
            id=str(data.get('id', '')),
            name=data.get('name', ''),
            phone=data.get('phone') or '',
            email=data.get('email') or '',
            address=data.get('address') or '',
        )


@dataclass
class Supplier(Contact):
    """Proveedor. Referenciado por Product.supplier_id y Expense.supplier_id."""


@dataclass
class Customer(Contact):
    """Cliente. Referenciado por Sale.customer_type."""


@dataclass
class Expense:
    """
    Gasto del negocio.

    Attributes:
        id: ID del gasto
        category: Categoría libre ('Supplier Payment' y 'Credit Payment' son reservadas)
        amount: Monto
        date: Fecha ISO (YYYY-MM-DD)
        description: Descripción
        supplier_id: Proveedor (solo para 'Supplier Payment')
        supplier_name: Snapshot del nombre del proveedor al registrar
    """
    id: str
    category: str
    amount: float
    date: str
    description: Optional[str] = None
    supplier_id: Optional[str] = None
    supplier_name: Optional[str] = None

    @property
    def is_supplier_payment(self) -> bool:
        return self.category == EXPENSE_SUPPLIER_PAYMENT

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'id': self.id,
            'category': self.category,
            'amount': self.amount,
            'date': self.date,
            'description': self.description,
        }
        if self.supplier_id is not None:
            d['supplierId'] = self.supplier_id
        if self.supplier_name is not None:
            d['supplierName'] = self.supplier_name
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Expense':
        return cls(
            id=str(data.get('id', '')),
            category=data.get('category', ''),
            amount=_to_float(data.get('amount', 0)),
            date=data.get('date', ''),
            description=data.get('description'),
            supplier_id=data.get('supplierId'),
            supplier_name=data.get('supplierName'),
        )


# ==============================================================================
# CONFIGURACIÓN (registros únicos)
# ==============================================================================

@dataclass
class CompanyInfo:
    """Datos de la empresa mostrados en dashboard y boletas."""
    name: str = 'Swift POS'
    logo: str = ''
    address: str = ''
    phone: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'logo': self.logo,
            'address': self.address,
            'phone': self.phone,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CompanyInfo':
        data = data or {}
        return cls(
            name=data.get('name') or 'Swift POS',
            logo=data.get('logo') or '',
            address=data.get('address') or '',
            phone=data.get('phone') or '',
        )


@dataclass
class SystemSettings:
    """
    Preferencias del sistema.

    Attributes:
        currency: Código de moneda (ISO 4217)
        tax_rate: Tasa de impuesto (informativa)
        enable_notifications: Mostrar notificaciones
        enable_sound: Sonidos
        storage_preference: {'type': 'local', 'path': ''}
    """
    currency: str = 'MMK'
    tax_rate: float = 0.0
    enable_notifications: bool = True
    enable_sound: bool = True
    storage_preference: Dict[str, str] = field(
        default_factory=lambda: {'type': 'local', 'path': ''}
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'currency': self.currency,
            'taxRate': self.tax_rate,
            'enableNotifications': self.enable_notifications,
            'enableSound': self.enable_sound,
            'storagePreference': dict(self.storage_preference),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SystemSettings':
        data = data or {}
        pref = data.get('storagePreference') or {'type': 'local', 'path': ''}
        return cls(
            currency=data.get('currency') or 'MMK',
            tax_rate=_to_float(data.get('taxRate', 0)),
            # Solo False explícito desactiva
            enable_notifications=data.get('enableNotifications') is not False,
            enable_sound=data.get('enableSound') is not False,
            storage_preference={
                'type': pref.get('type', 'local'),
                'path': pref.get('path', ''),
            },
        )


def default_collections() -> Dict[str, Any]:
    """
    Valores iniciales de cada colección en el primer arranque.

    Returns:
        Diccionario {colección: valor por defecto} (copias nuevas)
    """
    return {
        'products': [],
        'sales': [],
        'suppliers': [],
        'expenses': [],
        'customers': [],
        'categories': list(DEFAULT_CATEGORIES),
        'companyInfo': CompanyInfo().to_dict(),
        'systemSettings': SystemSettings().to_dict(),
    }


def copy_lines(lines: List[CartLine]) -> tuple:
    """Copia profunda de líneas para congelarlas dentro de una venta."""
    return tuple(copy.deepcopy(line) for line in lines)
