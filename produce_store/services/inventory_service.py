"""
Service for inventory management: stock summary, Excel template and bulk
stock updates from an uploaded sheet.
"""
import io
import logging
from typing import List, Dict, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

from produce_store.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

TEMPLATE_HEADERS = ["Product ID", "Name", "Category", "Unit", "Current Stock", "New Stock", "Available"]

TRUE_VALUES = {"yes", "y", "true", "1", "available"}
FALSE_VALUES = {"no", "n", "false", "0", "unavailable"}


def _find_column(columns, *needles) -> Optional[str]:
    """First column whose lower-cased name equals or contains one of the needles"""
    lowered = {str(c).strip().lower(): c for c in columns}
    for needle in needles:
        if needle in lowered:
            return lowered[needle]
    for needle in needles:
        for name, col in lowered.items():
            if needle in name:
                return col
    return None


def _parse_bool(value) -> Optional[bool]:
    if value is None or (not isinstance(value, bool) and pd.isna(value)):
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    return None


class InventoryService:
    """Service for inventory business logic"""

    def __init__(self, product_repo: Optional[ProductRepository] = None):
        self.product_repo = product_repo or ProductRepository()

    def get_stock_summary(self, low_stock_threshold: int = 5) -> Dict:
        summary = self.product_repo.get_stock_summary(low_stock_threshold)
        if 'stock_value' in summary:
            summary['stock_value'] = float(summary['stock_value'] or 0)
        summary['low_stock_threshold'] = low_stock_threshold
        return summary

    def generate_inventory_template(self) -> io.BytesIO:
        """Excel sheet with every product; admins edit the New Stock column"""
        products = self.product_repo.find_stock_rows()

        wb = Workbook()
        ws = wb.active
        ws.title = "Inventory"

        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_font = Font(color="FFFFFF", bold=True, size=12)
        border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        for col_num, header in enumerate(TEMPLATE_HEADERS, 1):
            cell = ws.cell(row=1, column=col_num, value=header)
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = Alignment(horizontal='center', vertical='center')
            cell.border = border

        for row_num, product in enumerate(products, 2):
            current_stock = product['stock_quantity'] if product['stock_quantity'] is not None else 0
            data = [
                str(product['id']),
                product['name'],
                product['category'] or "",
                product['unit'] or "",
                current_stock,
                current_stock,
                "Yes" if product['is_available'] is not False else "No",
            ]

            for col_num, value in enumerate(data, 1):
                cell = ws.cell(row=row_num, column=col_num, value=value)
                cell.border = border
                cell.alignment = Alignment(horizontal='left', vertical='center')

                if col_num in [5, 6]:
                    cell.alignment = Alignment(horizontal='right', vertical='center')
                    cell.number_format = '#,##0'

        ws.column_dimensions['A'].width = 38
        ws.column_dimensions['B'].width = 40
        ws.column_dimensions['C'].width = 18
        ws.column_dimensions['D'].width = 10
        ws.column_dimensions['E'].width = 16
        ws.column_dimensions['F'].width = 16
        ws.column_dimensions['G'].width = 12

        ws.freeze_panes = 'A2'

        excel_file = io.BytesIO()
        wb.save(excel_file)
        excel_file.seek(0)

        return excel_file

    @staticmethod
    def read_sheet(file_content: bytes, filename: str) -> pd.DataFrame:
        if filename.lower().endswith(".csv"):
            return pd.read_csv(io.BytesIO(file_content))
        return pd.read_excel(io.BytesIO(file_content), sheet_name=0, header=0)

    def parse_stock_rows(self, df: pd.DataFrame) -> List[Dict]:
        """
        Pull (product id, new stock, availability) rows out of a sheet

        Raises:
            ValueError: the id or stock column can't be identified
        """
        id_col = _find_column(df.columns, "product id", "id")
        qty_col = _find_column(df.columns, "new stock", "new quantity", "stock", "quantity")
        available_col = _find_column(df.columns, "available")

        if id_col is None or qty_col is None:
            raise ValueError(
                f"Could not identify the product id and stock columns. Columns found: {list(df.columns)}"
            )

        rows = []
        for _, row in df.iterrows():
            product_id = str(row[id_col]).strip() if pd.notna(row[id_col]) else ""
            if not product_id or product_id.lower() in ["product id", "id", "nan"]:
                continue

            qty = row[qty_col] if pd.notna(row[qty_col]) else None
            try:
                qty = int(float(qty)) if qty is not None else None
            except (ValueError, TypeError):
                qty = None

            rows.append({
                "product_id": product_id,
                "new_stock": qty,
                "is_available": _parse_bool(row[available_col]) if available_col is not None else None,
            })
        return rows

    def _plan_changes(self, rows: List[Dict]) -> Dict:
        """Compare sheet rows with the catalog"""
        products = {str(p['id']): p for p in self.product_repo.find_stock_rows()}

        changes = []
        unchanged = 0
        not_found = []
        invalid = []
        for row in rows:
            product = products.get(row['product_id'])
            if product is None:
                not_found.append({"product_id": row['product_id'], "reason": "Product not found"})
                continue
            if row['new_stock'] is not None and row['new_stock'] < 0:
                invalid.append({"product_id": row['product_id'], "reason": "Stock cannot be negative"})
                continue

            updates = {}
            old_stock = product['stock_quantity']
            if row['new_stock'] is not None and row['new_stock'] != old_stock:
                updates['stock_quantity'] = row['new_stock']
            if row['is_available'] is not None and row['is_available'] != (product['is_available'] is not False):
                updates['is_available'] = row['is_available']

            if not updates:
                unchanged += 1
                continue

            changes.append({
                "product_id": row['product_id'],
                "name": product['name'],
                "old_stock": old_stock,
                "new_stock": updates.get('stock_quantity', old_stock),
                "updates": updates,
            })

        return {"changes": changes, "unchanged": unchanged, "not_found": not_found, "invalid": invalid}

    def preview_inventory_file(self, file_content: bytes, filename: str) -> Dict:
        """
        Preview an uploaded sheet WITHOUT updating the database.
        """
        try:
            rows = self.parse_stock_rows(self.read_sheet(file_content, filename))
        except Exception as e:
            return {"status": "error", "message": f"Error reading file: {str(e)}"}

        plan = self._plan_changes(rows)
        return {
            "status": "success",
            "filename": filename,
            "total_rows": len(rows),
            "changes": [{k: v for k, v in c.items() if k != "updates"} for c in plan['changes']],
            "unchanged": plan['unchanged'],
            "not_found": plan['not_found'],
            "invalid": plan['invalid'],
        }

    def process_inventory_upload(self, file_content: bytes, filename: str) -> Dict:
        """
        Apply an uploaded sheet

        Each change goes through ProductRepository.update, so the usual
        stock notifications are written.
        """
        try:
            rows = self.parse_stock_rows(self.read_sheet(file_content, filename))
        except Exception as e:
            return {"status": "error", "message": f"Error reading file: {str(e)}"}

        plan = self._plan_changes(rows)
        results = {
            "status": "success",
            "filename": filename,
            "success": [],
            "errors": [],
            "not_found": plan['not_found'],
            "invalid": plan['invalid'],
            "summary": {
                "total": len(rows),
                "updated": 0,
                "unchanged": plan['unchanged'],
                "failed": 0,
                "not_found": len(plan['not_found']),
            },
        }

        for change in plan['changes']:
            try:
                self.product_repo.update(change['product_id'], change['updates'])
                results["success"].append({k: v for k, v in change.items() if k != "updates"})
                results["summary"]["updated"] += 1
            except Exception as e:
                logger.error(f"Stock update failed for product {change['product_id']}: {e}")
                results["errors"].append({"product_id": change['product_id'], "error": str(e)})
                results["summary"]["failed"] += 1

        logger.info(f"Inventory upload {filename}: {results['summary']}")
        return results
