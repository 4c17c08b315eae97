"""
Command-line interface for the storefront invoice generator.
"""

import argparse
import sys
from typing import List, Optional, Tuple

from . import __version__
from .invoicing.calculator import format_money, minor_to_major, round_rupees
from .invoicing.models import InvoiceBreakdown
from .invoicing.service import ORDER_SOURCES, InvoiceService
from .invoicing.words import amount_in_words, invoice_amount_line
from .utils.config import Config
from .utils.logging import setup_logging


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="invoice-gen",
        description="Invoice Gen - Storefront GST Tax Invoice Generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  invoice-gen generate --order-id 1042
  invoice-gen generate --source file --order-file order.json --output-dir out/
  invoice-gen totals --order-id 1042 --source mongo
  invoice-gen words 123456
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Invoice Gen {__version__}",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    parser.add_argument(
        "--log-file",
        help="Log file path",
    )

    parser.add_argument(
        "--env-file",
        default=".env",
        help="Environment file with API, database and seller settings (default: .env)",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
    )

    def add_source_arguments(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--order-id",
            type=int,
            help="Storefront order id",
        )
        sub.add_argument(
            "--source",
            choices=ORDER_SOURCES,
            default="api",
            help="Where to load the order from (default: api)",
        )
        sub.add_argument(
            "--order-file",
            help="Exported order JSON document (with --source file)",
        )

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate a PDF tax invoice for an order",
    )
    add_source_arguments(generate_parser)
    generate_parser.add_argument(
        "--output-dir",
        help="Directory to write the invoice to (default: INVOICE_OUTPUT_DIR or ./invoices)",
    )

    totals_parser = subparsers.add_parser(
        "totals",
        help="Print the tax and totals breakdown for an order",
    )
    add_source_arguments(totals_parser)

    words_parser = subparsers.add_parser(
        "words",
        help="Print a whole rupee amount in words",
    )
    words_parser.add_argument(
        "amount",
        type=int,
        help="Amount in rupees",
    )

    return parser


def _print_box(lines: List[Tuple[str, str]]) -> None:
    label_width = max(len(lbl) for lbl, _ in lines)
    inner_width = max(len(f" {lbl.ljust(label_width)} : {val}") for lbl, val in lines) + 1
    print("┌" + "─" * inner_width + "┐")
    for lbl, val in lines:
        line = f" {lbl.ljust(label_width)} : {val}"
        print(f"│{line.ljust(inner_width)}│")
    print("└" + "─" * inner_width + "┘")


def print_breakdown(breakdown: InvoiceBreakdown) -> None:
    """Print the invoice breakdown as plain-text tables."""
    order, totals = breakdown.order, breakdown.totals
    _print_box([
        ("Order ID", f"OD{order.id}"),
        ("Customer", order.user_name),
        ("Payment Method", order.payment_method.value),
        ("Order Total", format_money(minor_to_major(order.total_amount))),
        ("Line Items", str(len(breakdown.lines))),
    ])

    print("\nLINE ITEMS:")
    print("=" * 96)
    header = f"{'#':<4}{'Product':<24}{'Qty':>5}{'Price':>12}{'Taxable':>12}{'IGST':>10}{'CGST':>10}{'SGST':>10}{'Total':>12}"
    print(header)
    print("-" * len(header))
    for index, line in enumerate(breakdown.lines, start=1):
        name = line.item.name if len(line.item.name) <= 22 else line.item.name[:19] + "..."
        print(
            f"{index:<4}{name:<24}{line.item.quantity:>5}{format_money(line.unit_price):>12}"
            f"{format_money(line.taxable_value):>12}{format_money(line.igst):>10}"
            f"{format_money(line.cgst):>10}{format_money(line.sgst):>10}{format_money(line.total):>12}"
        )
        if line.rates.total == 0:
            print(f"{'':4}No GST applied (0%)")

    print("\nTOTALS:")
    print("=" * 60)
    rows = [
        ("Subtotal", format_money(totals.subtotal)),
        ("Total Quantity", str(totals.total_quantity)),
        ("Item Discount", f"-{format_money(totals.total_discount)}"),
        ("IGST", format_money(totals.total_igst)),
        ("CGST", format_money(totals.total_cgst)),
        ("SGST/UTGST", format_money(totals.total_sgst)),
        ("Total Tax Amount", format_money(totals.total_tax)),
        ("Shipping & Handling", format_money(totals.delivery_charge)),
        ("Universal Discount", f"-{format_money(totals.universal_discount)}"),
        ("COD Charges", format_money(totals.cod_charge)),
        ("Online Payment Discount", f"-{format_money(totals.online_payment_discount)}"),
        ("Grand Total", f"Rs. {format_money(totals.grand_total, 0)}"),
    ]
    for label, value in rows:
        print(f"   {label:<26}{value:>14}")
    print(f"\n   {invoice_amount_line(round_rupees(totals.grand_total))}")


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    config = Config(parsed_args.env_file)
    log_level = "DEBUG" if parsed_args.verbose else config.get("log_level")
    logger = setup_logging(level=log_level, log_file=parsed_args.log_file)

    try:
        if parsed_args.command == "words":
            print(amount_in_words(parsed_args.amount))

        elif parsed_args.command in ("generate", "totals"):
            service = InvoiceService(config)
            order = service.load_order(
                order_id=parsed_args.order_id,
                source=parsed_args.source,
                order_file=parsed_args.order_file,
            )
            if parsed_args.command == "generate":
                path = service.generate(order, output_dir=parsed_args.output_dir)
                print(f"Invoice saved: {path}")
            else:
                print_breakdown(service.compute(order))

        elif not parsed_args.command:
            parser.print_help()
            return 1

    except Exception as e:
        logger.error(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
