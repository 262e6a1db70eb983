"""Utilities to export sales and stock reports as Excel workbooks."""

from decimal import Decimal
from io import BytesIO
from typing import Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter


__all__ = [
    "generate_sales_report_workbook",
    "generate_inventory_report_workbook",
]


HEADER_FILL = PatternFill(start_color="305496", end_color="305496", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
TOTAL_FILL = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")
LOW_STOCK_FILL = PatternFill(start_color="FCE4D6", end_color="FCE4D6", fill_type="solid")
CURRENCY_NUMBER_FORMAT = "#,##0.00"
QUANTITY_NUMBER_FORMAT = "#,##0.##"


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _auto_size_columns(worksheet) -> None:
    for column_cells in worksheet.columns:
        column_letter = get_column_letter(column_cells[0].column)
        max_length = 0
        for cell in column_cells:
            if cell.value is None:
                continue
            max_length = max(max_length, len(str(cell.value)))
        worksheet.column_dimensions[column_letter].width = min(max_length + 2, 45)


def _write_header(worksheet, header: Sequence[str]) -> None:
    worksheet.append(list(header))
    for cell in worksheet[worksheet.max_row]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center")


def _to_bytes(workbook: Workbook) -> bytes:
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def generate_sales_report_workbook(orders: Sequence, start_date: str, end_date: str) -> bytes:
    """Return an Excel workbook listing sales orders with a grand total."""

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Sales Report"

    worksheet["A1"] = "Sales Report"
    worksheet["A1"].font = Font(size=14, bold=True)
    worksheet["A2"] = f"Period: {start_date} to {end_date}"
    worksheet["A2"].font = Font(italic=True)
    worksheet.append([])

    _write_header(worksheet, ["#", "Date", "Order", "Customer", "Items", "Payment Status", "Total Sale"])

    running_total = Decimal("0")
    for index, order in enumerate(orders, start=1):
        amount = _to_decimal(order.total_sale)
        running_total += amount
        worksheet.append([
            index,
            order.order_date.strftime("%Y-%m-%d"),
            order.order_number,
            order.customer.name,
            len(order.items.all()),
            order.payment_status,
            float(amount),
        ])
        row = worksheet[worksheet.max_row]
        row[0].alignment = Alignment(horizontal="center")
        row[1].alignment = Alignment(horizontal="center")
        row[6].number_format = CURRENCY_NUMBER_FORMAT
        row[6].alignment = Alignment(horizontal="right")

    worksheet.append([])
    worksheet.append(["", "", "", "Grand Total", "", "", float(running_total)])
    total_row = worksheet[worksheet.max_row]
    for cell in (total_row[3], total_row[6]):
        cell.font = Font(bold=True)
        cell.fill = TOTAL_FILL
    total_row[6].number_format = CURRENCY_NUMBER_FORMAT
    total_row[6].alignment = Alignment(horizontal="right")

    _auto_size_columns(worksheet)
    return _to_bytes(workbook)


def generate_inventory_report_workbook(items: Sequence) -> bytes:
    """Return an Excel workbook of stock levels, highlighting items under their minimum."""

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Inventory"

    worksheet["A1"] = "Inventory Report"
    worksheet["A1"].font = Font(size=14, bold=True)
    worksheet.append([])

    _write_header(
        worksheet,
        ["Item Code", "Description", "Type", "Quantity", "Unit", "Min Stock", "Cost/Unit", "Sale Price", "Stock Value"],
    )

    total_value = Decimal("0")
    for item in items:
        quantity = _to_decimal(item.current_quantity)
        value = quantity * _to_decimal(item.cost_per_unit)
        total_value += value
        worksheet.append([
            item.item_code,
            item.description,
            item.product_type,
            float(quantity),
            item.unit_of_measure,
            float(_to_decimal(item.min_stock_level)),
            float(_to_decimal(item.cost_per_unit)),
            float(_to_decimal(item.sale_price)),
            float(value),
        ])
        row = worksheet[worksheet.max_row]
        row[3].number_format = QUANTITY_NUMBER_FORMAT
        row[5].number_format = QUANTITY_NUMBER_FORMAT
        for cell in row[6:9]:
            cell.number_format = CURRENCY_NUMBER_FORMAT
        if item.is_below_min_stock:
            for cell in row:
                cell.fill = LOW_STOCK_FILL

    worksheet.append([])
    worksheet.append(["", "", "", "", "", "", "", "Total Value", float(total_value)])
    total_row = worksheet[worksheet.max_row]
    for cell in (total_row[7], total_row[8]):
        cell.font = Font(bold=True)
        cell.fill = TOTAL_FILL
    total_row[8].number_format = CURRENCY_NUMBER_FORMAT

    _auto_size_columns(worksheet)
    return _to_bytes(workbook)
