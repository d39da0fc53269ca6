# ==============================================================================
# SERVICIO DE GASTOS - Gastos y pagos a proveedores
# ==============================================================================
# Un pago a proveedor es un gasto con categoría 'Supplier Payment' y
# supplierId. El saldo de un proveedor se calcula sobre el valor de
# compra del stock actual de sus productos:
#
#   restante = max(0, Σ(buyingPrice × stock) − Σ pagos)
# ==============================================================================

import logging
import math
from typing import Any, Dict, List, Optional

from swift_pos.exceptions import NotFound, ValidationError
from swift_pos.models.entities import (
    EXPENSE_SUPPLIER_PAYMENT,
    Expense,
    generate_id,
)
from swift_pos.repositories.pos_repository import PosRepository

logger = logging.getLogger(__name__)


def _validate_amount(value: Any) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Monto inválido: {value!r}", field='amount')
    if math.isnan(amount) or amount <= 0:
        raise ValidationError("El monto debe ser mayor a 0", field='amount')
    return amount


class ExpenseService:
    """
    Servicio de gastos.

    Responsabilidades:
    - CRUD de gastos
    - Registro de pagos a proveedores
    - Resumen y movimientos por proveedor
    """

    def __init__(self, repository: PosRepository):
        self.repository = repository

    # =========================================================================
    # GASTOS
    # =========================================================================

    def list_expenses(self) -> List[Expense]:
        return self.repository.get_expenses()

    def _supplier_name(self, supplier_id: Optional[str]) -> Optional[str]:
        if not supplier_id:
            return None
        for supplier in self.repository.get_suppliers():
            if supplier.id == supplier_id:
                return supplier.name
        return None

    def _build(self, expense_id: str, data: Dict[str, Any]) -> Expense:
        category = str(data.get('category') or '').strip()
        if not category:
            raise ValidationError("La categoría es obligatoria", field='category')
        amount = _validate_amount(data.get('amount'))
        date = str(data.get('date') or '').strip()
        if not date:
            raise ValidationError("La fecha es obligatoria", field='date')

        supplier_id = data.get('supplierId') or None
        description = str(data.get('description') or '').strip() or None
        return Expense(
            id=expense_id,
            category=category,
            amount=amount,
            date=date,
            description=description,
            supplier_id=supplier_id,
            supplier_name=self._supplier_name(supplier_id),
        )

    def create_expense(self, data: Dict[str, Any]) -> Expense:
        """
        Registra un gasto.

        Args:
            data: {'category', 'amount', 'date', 'description', 'supplierId'}

        Returns:
            El gasto creado

        Raises:
            ValidationError: Categoría o fecha vacías, monto <= 0
        """
        expense = self._build(generate_id(), data)
        expenses = self.repository.get('expenses')
        expenses.append(expense.to_dict())
        self.repository.put('expenses', expenses)
        logger.info("[GASTOS] %s: %.2f (%s)", expense.category, expense.amount, expense.date)
        return expense

    def update_expense(self, expense_id: str, data: Dict[str, Any]) -> Expense:
        expense = self._build(expense_id, data)
        expenses = self.repository.get('expenses')
        for index, raw in enumerate(expenses):
            if str(raw.get('id')) == expense_id:
                expenses[index] = expense.to_dict()
                self.repository.put('expenses', expenses)
                return expense
        raise NotFound(f"Gasto no encontrado: {expense_id}", id=expense_id)

    def delete_expense(self, expense_id: str) -> None:
        expenses = self.repository.get('expenses')
        remaining = [e for e in expenses if str(e.get('id')) != expense_id]
        if len(remaining) == len(expenses):
            raise NotFound(f"Gasto no encontrado: {expense_id}", id=expense_id)
        self.repository.put('expenses', remaining)
        logger.info("[GASTOS] Gasto eliminado: %s", expense_id)

    # =========================================================================
    # PAGOS A PROVEEDORES
    # =========================================================================

    def add_supplier_payment(
        self,
        supplier_id: str,
        amount: Any,
        date: str,
        notes: str = ''
    ) -> Expense:
        """
        Registra un pago a proveedor como gasto 'Supplier Payment'.

        Args:
            supplier_id: Proveedor (debe existir)
            amount: Monto (> 0)
            date: Fecha ISO
            notes: Descripción opcional

        Returns:
            El gasto creado

        Raises:
            ValidationError: Proveedor vacío, monto <= 0 o fecha vacía
            NotFound: El proveedor no existe
        """
        if not supplier_id:
            raise ValidationError("Seleccione un proveedor", field='supplierId')
        if self._supplier_name(supplier_id) is None:
            raise NotFound(f"Proveedor no encontrado: {supplier_id}", supplier_id=supplier_id)
        return self.create_expense({
            'category': EXPENSE_SUPPLIER_PAYMENT,
            'amount': amount,
            'date': date,
            'description': notes,
            'supplierId': supplier_id,
        })

    def supplier_payment_history(self, supplier_id: str) -> List[Expense]:
        """Pagos a un proveedor, del más reciente al más antiguo."""
        payments = [
            e for e in self.repository.get_expenses()
            if e.is_supplier_payment and e.supplier_id == supplier_id
        ]
        return sorted(payments, key=lambda e: e.date, reverse=True)

    def supplier_payment_summary(self, supplier_id: Optional[str]) -> Dict[str, Any]:
        """
        Resumen de deuda con un proveedor.

        Args:
            supplier_id: Proveedor (vacío devuelve todo en cero)

        Returns:
            {'totalPieces', 'totalBuying', 'totalPaid', 'remaining'}
        """
        if not supplier_id:
            return {'totalPieces': 0, 'totalBuying': 0.0, 'totalPaid': 0.0, 'remaining': 0.0}

        products = [p for p in self.repository.get_products() if p.supplier_id == supplier_id]
        total_pieces = sum(p.stock for p in products)
        total_buying = sum(p.inventory_value for p in products)
        total_paid = sum(e.amount for e in self.supplier_payment_history(supplier_id))
        return {
            'totalPieces': total_pieces,
            'totalBuying': total_buying,
            'totalPaid': total_paid,
            'remaining': max(0.0, total_buying - total_paid),
        }
