# ==============================================================================
# SERVICIO DE CONTACTOS - Proveedores y clientes
# ==============================================================================
# CRUD de proveedores y clientes con validación de formato.
# Las referencias a contactos son DÉBILES: eliminar un contacto no toca
# ventas, gastos ni productos que lo mencionan.
# ==============================================================================

import logging
import re
from typing import Any, Dict, List, Optional

from swift_pos.exceptions import NotFound, ValidationError
from swift_pos.models.entities import (
    RESERVED_CUSTOMER_NAMES,
    UNKNOWN_NAME,
    Contact,
    Customer,
    Supplier,
    generate_id,
)
from swift_pos.repositories.pos_repository import PosRepository

logger = logging.getLogger(__name__)


EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_PATTERN = re.compile(r'^\+?[\d\s\-()]{10,}$')


def validate_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ''))


def validate_phone(phone: str) -> bool:
    return bool(PHONE_PATTERN.match(phone or ''))


def resolve_customer_name(customer_type: str, customers: List[Customer]) -> str:
    """
    Nombre a mostrar para el tipo de cliente de una venta.

    Args:
        customer_type: 'walk-in', 'online' o ID de cliente
        customers: Clientes registrados

    Returns:
        Nombre reservado, nombre del cliente o 'Unknown' si ya no existe
    """
    if customer_type in RESERVED_CUSTOMER_NAMES:
        return RESERVED_CUSTOMER_NAMES[customer_type]
    for customer in customers:
        if customer.id == customer_type:
            return customer.name
    return UNKNOWN_NAME


class ContactsService:
    """
    Servicio para gestión de proveedores y clientes.

    Ambos comparten la misma forma (nombre, teléfono, email, dirección),
    así que las operaciones se escriben una vez y se parametrizan por
    colección.
    """

    _ENTITY_BY_COLLECTION = {
        'suppliers': Supplier,
        'customers': Customer,
    }

    def __init__(self, repository: PosRepository):
        self.repository = repository

    # =========================================================================
    # VALIDACIÓN
    # =========================================================================

    @staticmethod
    def _clean(data: Dict[str, Any]) -> Dict[str, str]:
        """
        Normaliza y valida los campos de un contacto.

        Raises:
            ValidationError: Nombre vacío, email o teléfono con formato inválido
        """
        cleaned = {
            key: str(data.get(key) or '').strip()
            for key in ('name', 'phone', 'email', 'address')
        }
        if not cleaned['name']:
            raise ValidationError("El nombre es obligatorio", field='name')
        if cleaned['email'] and not validate_email(cleaned['email']):
            raise ValidationError(f"Email inválido: {cleaned['email']}", field='email')
        if cleaned['phone'] and not validate_phone(cleaned['phone']):
            raise ValidationError(f"Teléfono inválido: {cleaned['phone']}", field='phone')
        return cleaned

    # =========================================================================
    # OPERACIONES GENÉRICAS
    # =========================================================================

    def _list(self, collection: str) -> List[Contact]:
        entity = self._ENTITY_BY_COLLECTION[collection]
        return [entity.from_dict(c) for c in self.repository.get(collection)]

    def _create(self, collection: str, data: Dict[str, Any]) -> Contact:
        cleaned = self._clean(data)
        entity = self._ENTITY_BY_COLLECTION[collection]
        contact = entity(id=generate_id(), **cleaned)

        records = self.repository.get(collection)
        records.append(contact.to_dict())
        self.repository.put(collection, records)
        logger.info("[CONTACTOS] %s creado: %s", collection, contact.name)
        return contact

    def _update(self, collection: str, contact_id: str, data: Dict[str, Any]) -> Contact:
        cleaned = self._clean(data)
        entity = self._ENTITY_BY_COLLECTION[collection]

        records = self.repository.get(collection)
        for index, record in enumerate(records):
            if str(record.get('id')) == contact_id:
                contact = entity(id=contact_id, **cleaned)
                records[index] = contact.to_dict()
                self.repository.put(collection, records)
                return contact
        raise NotFound(f"Contacto no encontrado: {contact_id}", id=contact_id)

    def _delete(self, collection: str, contact_id: str) -> None:
        records = self.repository.get(collection)
        remaining = [r for r in records if str(r.get('id')) != contact_id]
        if len(remaining) == len(records):
            raise NotFound(f"Contacto no encontrado: {contact_id}", id=contact_id)
        self.repository.put(collection, remaining)
        logger.info("[CONTACTOS] %s eliminado: %s", collection, contact_id)

    # =========================================================================
    # PROVEEDORES
    # =========================================================================

    def list_suppliers(self) -> List[Supplier]:
        return self._list('suppliers')

    def get_supplier(self, supplier_id: str) -> Optional[Supplier]:
        for supplier in self.list_suppliers():
            if supplier.id == supplier_id:
                return supplier
        return None

    def create_supplier(self, data: Dict[str, Any]) -> Supplier:
        """
        Registra un proveedor.

        Args:
            data: {'name', 'phone', 'email', 'address'}

        Returns:
            El proveedor creado
        """
        return self._create('suppliers', data)

    def update_supplier(self, supplier_id: str, data: Dict[str, Any]) -> Supplier:
        return self._update('suppliers', supplier_id, data)

    def delete_supplier(self, supplier_id: str) -> None:
        self._delete('suppliers', supplier_id)

    # =========================================================================
    # CLIENTES
    # =========================================================================

    def list_customers(self) -> List[Customer]:
        return self._list('customers')

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        for customer in self.list_customers():
            if customer.id == customer_id:
                return customer
        return None

    def create_customer(self, data: Dict[str, Any]) -> Customer:
        return self._create('customers', data)

    def update_customer(self, customer_id: str, data: Dict[str, Any]) -> Customer:
        return self._update('customers', customer_id, data)

    def delete_customer(self, customer_id: str) -> None:
        self._delete('customers', customer_id)

    def resolve_customer_name(self, customer_type: str) -> str:
        """Nombre a mostrar para un tipo de cliente (ver función del módulo)."""
        return resolve_customer_name(customer_type, self.list_customers())
