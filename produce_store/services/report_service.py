"""
Report Service
Weekly / monthly sales reports with CSV and Excel export

Author: TM3
Date: 2026-02-22
"""
import io
import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

import pandas as pd
from dateutil.relativedelta import relativedelta
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment

from produce_store.core.exceptions import ValidationError
from produce_store.repositories.analytics_repository import AnalyticsRepository
from produce_store.repositories.customer_repository import CustomerRepository
from produce_store.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

REPORT_TYPES = ("weekly", "monthly")


def report_range(report_type: str, today: date) -> Tuple[date, date]:
    """Weekly covers the last 7 days; monthly the span since this day last month"""
    if report_type == "weekly":
        return today - timedelta(days=7), today
    if report_type == "monthly":
        return today - relativedelta(months=1), today
    raise ValidationError(f"report_type must be one of {', '.join(REPORT_TYPES)}")


class ReportService:
    """Service for sales reports"""

    def __init__(
        self,
        analytics_repo: Optional[AnalyticsRepository] = None,
        customer_repo: Optional[CustomerRepository] = None,
        notifications: Optional[NotificationService] = None
    ):
        self.analytics_repo = analytics_repo or AnalyticsRepository()
        self.customer_repo = customer_repo or CustomerRepository()
        self.notifications = notifications or NotificationService()

    def build_report(self, report_type: str, today: Optional[date] = None) -> Dict:
        """
        Sales figures over every order created in the range

        Cancelled orders count toward totals here; orders_by_status shows
        how many of them there were.
        """
        start_date, end_date = report_range(report_type, today or date.today())
        start = datetime.combine(start_date, time.min)
        end = datetime.combine(end_date, time.max)

        summary = self.analytics_repo.get_sales_summary(start, end)
        total_orders = summary['total_orders']
        total_revenue = float(summary['total_revenue'] or 0)
        average = round(total_revenue / total_orders) if total_orders else 0

        top_products = [
            {
                "product_name": p['product_name'],
                "quantity": int(p['quantity']),
                "revenue": round(float(p['revenue']), 2),
            }
            for p in self.analytics_repo.get_product_sales(start, end, limit=10)
        ]

        daily = self.analytics_repo.get_daily_orders(start_date, end_date, include_cancelled=True)
        daily_revenue = [
            {
                "date": day.isoformat(),
                "orders": values['orders'],
                "revenue": round(float(values['revenue']), 2),
            }
            for day, values in sorted(daily.items())
        ]

        report = {
            "report_type": report_type,
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "total_orders": total_orders,
            "total_revenue": round(total_revenue, 2),
            "average_order_value": average,
            "new_customers": self.customer_repo.count_new_profiles(start),
            "top_products": top_products,
            "orders_by_status": summary['orders_by_status'],
            "daily_revenue": daily_revenue,
        }
        logger.info(
            f"Built {report_type} report {report['start_date']}..{report['end_date']}: "
            f"{total_orders} orders, {report['total_revenue']} revenue"
        )
        return report

    # ========================================
    # Export
    # ========================================

    @staticmethod
    def report_rows(report: Dict) -> List[List]:
        """Sectioned rows shared by the CSV and Excel exports"""
        title = "Weekly" if report['report_type'] == "weekly" else "Monthly"
        rows = [
            ["Sales Report", title],
            ["Date Range", f"{report['start_date']} to {report['end_date']}"],
            [],
            ["Summary"],
            ["Total Orders", report['total_orders']],
            ["Total Revenue", report['total_revenue']],
            ["Average Order Value", report['average_order_value']],
            ["New Customers", report['new_customers']],
            [],
            ["Top Products"],
            ["Product", "Quantity Sold", "Revenue"],
        ]
        rows += [[p['product_name'], p['quantity'], p['revenue']] for p in report['top_products']]
        rows += [[], ["Orders by Status"], ["Status", "Orders"]]
        rows += [[status, count] for status, count in report['orders_by_status'].items()]
        rows += [[], ["Daily Breakdown"], ["Date", "Orders", "Revenue"]]
        rows += [[d['date'], d['orders'], d['revenue']] for d in report['daily_revenue']]
        return rows

    def to_csv(self, report: Dict) -> str:
        df = pd.DataFrame(self.report_rows(report))
        return df.to_csv(index=False, header=False)

    def to_excel(self, report: Dict) -> io.BytesIO:
        """Summary sheet plus a sheet of raw orders in the range"""
        wb = Workbook()
        ws = wb.active
        ws.title = "Sales Report"

        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_font = Font(color="FFFFFF", bold=True, size=12)
        section_font = Font(bold=True, size=12)
        table_headers = {("Product", "Quantity Sold", "Revenue"), ("Status", "Orders"), ("Date", "Orders", "Revenue")}

        for row_num, row in enumerate(self.report_rows(report), 1):
            for col_num, value in enumerate(row, 1):
                cell = ws.cell(row=row_num, column=col_num, value=value)
                if row_num == 1:
                    cell.fill = header_fill
                    cell.font = header_font
                    cell.alignment = Alignment(horizontal='center', vertical='center')
                elif tuple(row) in table_headers:
                    cell.font = Font(bold=True)
                elif len(row) == 1:
                    cell.font = section_font

        ws.column_dimensions['A'].width = 32
        ws.column_dimensions['B'].width = 24
        ws.column_dimensions['C'].width = 16
        ws.freeze_panes = 'A2'

        start = datetime.combine(date.fromisoformat(report['start_date']), time.min)
        end = datetime.combine(date.fromisoformat(report['end_date']), time.max)
        orders = self.analytics_repo.get_order_rows(start, end)

        orders_ws = wb.create_sheet("Orders")
        headers = [
            "Order Number", "Created At", "Customer", "Phone", "Status",
            "Payment Method", "Payment Status", "Subtotal", "Delivery", "Total"
        ]
        for col_num, header in enumerate(headers, 1):
            cell = orders_ws.cell(row=1, column=col_num, value=header)
            cell.fill = header_fill
            cell.font = header_font
            cell.alignment = Alignment(horizontal='center', vertical='center')

        for row_num, order in enumerate(orders, 2):
            created_at = order['created_at']
            if isinstance(created_at, datetime) and created_at.tzinfo is not None:
                created_at = created_at.replace(tzinfo=None)
            values = [
                order['order_number'], created_at, order['delivery_name'], order['delivery_phone'],
                order['status'], order['payment_method'], order['payment_status'],
                float(order['subtotal'] or 0), float(order['delivery_charge'] or 0), float(order['total'] or 0),
            ]
            for col_num, value in enumerate(values, 1):
                cell = orders_ws.cell(row=row_num, column=col_num, value=value)
                if col_num >= 8:
                    cell.number_format = '#,##0.00'

        for letter in "ABCDEFGHIJ":
            orders_ws.column_dimensions[letter].width = 18
        orders_ws.freeze_panes = 'A2'

        excel_file = io.BytesIO()
        wb.save(excel_file)
        excel_file.seek(0)
        return excel_file

    async def email_report(self, report: Dict, to: Optional[str] = None) -> bool:
        return await self.notifications.send_sales_report(report, to)
