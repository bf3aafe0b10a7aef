"""
PDF report generation utility.
Inventory valuation and production reports, built from engine snapshots.
"""
import io
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.enums import TA_CENTER

from artisan_ledger.engine.reorder import classify
from artisan_ledger.schemas import Batch, Item, ItemStatus, Recipe
from artisan_ledger.utils.numbers import (
    ZERO,
    currency_symbol,
    format_money,
    format_unit_cost,
    to_money,
    to_percent,
)

STATUS_LABELS = {
    ItemStatus.OUT_OF_STOCK: "OUT",
    ItemStatus.LOW_STOCK: "LOW",
    ItemStatus.IN_STOCK: "OK",
}


class PDFReportGenerator:
    """Generate PDF reports for the ledger."""

    def __init__(self, app_name: str = "Artisan's Ledger", currency: str = "USD"):
        self.app_name = app_name
        self.currency_symbol = currency_symbol(currency)
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _money(self, value) -> str:
        return format_money(value, self.currency_symbol)

    def _setup_custom_styles(self):
        """Setup custom paragraph styles."""
        # Title style
        self.styles.add(ParagraphStyle(
            name='ReportTitle',
            parent=self.styles['Heading1'],
            fontSize=24,
            alignment=TA_CENTER,
            spaceAfter=30,
            textColor=colors.HexColor('#2c3e50')
        ))

        # Subtitle style
        self.styles.add(ParagraphStyle(
            name='ReportSubtitle',
            parent=self.styles['Heading2'],
            fontSize=14,
            alignment=TA_CENTER,
            spaceAfter=20,
            textColor=colors.HexColor('#7f8c8d')
        ))

        # Section header
        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontSize=16,
            spaceBefore=20,
            spaceAfter=10,
            textColor=colors.HexColor('#2980b9')
        ))

        # Normal text
        self.styles.add(ParagraphStyle(
            name='NormalText',
            parent=self.styles['Normal'],
            fontSize=10,
            spaceAfter=6
        ))

        # Footer style
        self.styles.add(ParagraphStyle(
            name='Footer',
            parent=self.styles['Normal'],
            fontSize=8,
            textColor=colors.gray,
            alignment=TA_CENTER
        ))

    def _table_style(self, header_color: str) -> TableStyle:
        return TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor(header_color)),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, 0), 9),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
            ('BACKGROUND', (0, 1), (-1, -1), colors.white),
            ('TEXTCOLOR', (0, 1), (-1, -1), colors.black),
            ('ALIGN', (1, 1), (-1, -1), 'RIGHT'),
            ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 1), (-1, -1), 8),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.whitesmoke, colors.white]),
        ])

    def _build(self, title: str, story: List, generated_at: Optional[datetime] = None) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=54,
            leftMargin=54,
            topMargin=72,
            bottomMargin=72,
            title=title,
        )
        generated_at = generated_at or datetime.now()
        header = [
            Paragraph(title, self.styles['ReportTitle']),
            Paragraph(f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}", self.styles['ReportSubtitle']),
            Spacer(1, 20),
        ]
        footer = [Spacer(1, 30), Paragraph(f"{self.app_name} - {title}", self.styles['Footer'])]
        doc.build(header + story + footer)

        buffer.seek(0)
        return buffer.getvalue()

    def generate_inventory_report(self, items: List[Item], generated_at: Optional[datetime] = None) -> bytes:
        """
        Stock level and valuation per item.

        Args:
            items: Non-archived items to list
            generated_at: Timestamp printed under the title

        Returns:
            PDF bytes
        """
        story = []

        total_value = to_money(sum((i.current_quantity * i.weighted_average_cost for i in items), ZERO))
        statuses = [classify(i) for i in items]
        summary_text = f"""
        <b>Summary:</b><br/>
        Total Items: {len(items)}<br/>
        Out of Stock: {statuses.count(ItemStatus.OUT_OF_STOCK)} items<br/>
        Low Stock: {statuses.count(ItemStatus.LOW_STOCK)} items<br/>
        Total Inventory Value: {self._money(total_value)}<br/>
        """
        story.append(Paragraph(summary_text, self.styles['NormalText']))
        story.append(Spacer(1, 20))

        story.append(Paragraph("Current Stock Levels", self.styles['SectionHeader']))
        table_data = [['SKU', 'Item', 'On Hand', 'Unit', 'Avg Cost', 'Value', 'Status']]
        for item, status in zip(items, statuses):
            table_data.append([
                item.sku,
                item.name,
                f"{item.current_quantity:.3f}",
                item.inventory_unit.value,
                format_unit_cost(item.weighted_average_cost, item.inventory_unit.value, self.currency_symbol),
                self._money(item.current_quantity * item.weighted_average_cost),
                STATUS_LABELS[status],
            ])

        table = Table(table_data, colWidths=[0.9*inch, 1.7*inch, 0.7*inch, 0.5*inch, 1.3*inch, 0.9*inch, 0.5*inch])
        table.setStyle(self._table_style('#2c3e50'))
        story.append(table)

        return self._build("Inventory Report", story, generated_at)

    def generate_production_report(
        self,
        batches: List[Batch],
        recipes: List[Recipe],
        generated_at: Optional[datetime] = None,
    ) -> bytes:
        """Yield and cost variance per batch, with a per-recipe summary."""
        story = []
        names = {r.recipe_id: r.name for r in recipes}

        total_cost = to_money(sum((b.actual_cost for b in batches), ZERO))
        avg_yield = (
            to_percent(sum((b.yield_percentage for b in batches), ZERO) / len(batches))
            if batches else to_percent(ZERO)
        )
        summary_text = f"""
        <b>Summary:</b><br/>
        Batches: {len(batches)}<br/>
        Average Yield: {avg_yield}%<br/>
        Total Production Cost: {self._money(total_cost)}<br/>
        """
        story.append(Paragraph(summary_text, self.styles['NormalText']))
        story.append(Spacer(1, 20))

        story.append(Paragraph("Batches", self.styles['SectionHeader']))
        table_data = [['Batch', 'Date', 'Recipe', 'Made', 'Yield %', 'Actual', 'Projected', 'Variance']]
        for batch in batches:
            table_data.append([
                batch.batch_id,
                batch.date_created.isoformat(),
                f"{names.get(batch.recipe_id, batch.recipe_id)} v{batch.recipe_version}",
                f"{batch.qty_made:.3f}",
                f"{batch.yield_percentage:.2f}",
                self._money(batch.actual_cost),
                self._money(batch.projected_cost),
                self._money(batch.cost_variance),
            ])

        table = Table(table_data, colWidths=[0.7*inch, 0.8*inch, 1.6*inch, 0.6*inch,
                                            0.6*inch, 0.8*inch, 0.8*inch, 0.8*inch])
        table.setStyle(self._table_style('#27ae60'))
        story.append(table)
        story.append(Spacer(1, 30))

        # Summary by recipe
        story.append(Paragraph("Summary by Recipe", self.styles['SectionHeader']))
        recipe_summary = {}
        for batch in batches:
            name = names.get(batch.recipe_id, batch.recipe_id)
            stats = recipe_summary.setdefault(name, {'count': 0, 'made': Decimal('0'), 'cost': Decimal('0')})
            stats['count'] += 1
            stats['made'] += batch.qty_made
            stats['cost'] += batch.actual_cost

        summary_table_data = [['Recipe', 'Batches', 'Total Made', 'Total Cost']]
        for name, stats in recipe_summary.items():
            summary_table_data.append([
                name,
                str(stats['count']),
                f"{stats['made']:.3f}",
                self._money(stats['cost']),
            ])
        summary_table = Table(summary_table_data, colWidths=[2.5*inch, 1*inch, 1*inch, 1.2*inch])
        summary_table.setStyle(self._table_style('#3498db'))
        story.append(summary_table)

        return self._build("Production Report", story, generated_at)
