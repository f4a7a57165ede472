#!/usr/bin/env python3
"""
Operator CLI for the inventory ledger.

Every command runs one ledger operation and prints the result as JSON.
Ledger errors print ``{"error": CODE, "message": ...}`` and exit with 1;
argparse usage errors exit with 2.

Usage:
  python3 scripts/ledger_cli.py [--config PATH] init-db
  python3 scripts/ledger_cli.py add-item "Copy paper A4" --quantity 10 --unit ream
  python3 scripts/ledger_cli.py receive 1 5 --by storekeeper
  python3 scripts/ledger_cli.py issue 1 4 --by alice --remarks "Room 204"
  python3 scripts/ledger_cli.py process 2 --by supervisor
  python3 scripts/ledger_cli.py cancel 2 --by supervisor
  python3 scripts/ledger_cli.py show 2            # or: show OUT-20261018-0001
  python3 scripts/ledger_cli.py list --pending --page-size 50

Configuration comes from inventory_config (defaults.yaml, --config or
$INVENTORY_LEDGER_CONFIG, then INVENTORY_LEDGER_* environment variables).
"""

import argparse
import json
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from inventory_config import get_active_config  # noqa: E402
from inventory_config.bridges import initialize_ledger  # noqa: E402
from inventory_ledger.db.engine import create_tables, reset_engine, session_scope  # noqa: E402
from inventory_ledger.domain.clock import Clock  # noqa: E402
from inventory_ledger.domain.dtos import ItemDTO, MovementQuery  # noqa: E402
from inventory_ledger.domain.movement import MovementDirection, MovementStatus  # noqa: E402
from inventory_ledger.exceptions import InventoryLedgerError  # noqa: E402
from inventory_ledger.models.item import Item  # noqa: E402


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Inventory transaction ledger")
    p.add_argument("--config", help="YAML config file (default: $INVENTORY_LEDGER_CONFIG)")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the ledger tables")

    add_item = sub.add_parser("add-item", help="Create a stock item")
    add_item.add_argument("name")
    add_item.add_argument("--quantity", type=int, default=0, help="Opening quantity")
    add_item.add_argument("--unit", help="Unit label, e.g. pcs or ream")
    add_item.add_argument("--description")

    for name, help_text in (("receive", "Record a receipt"), ("issue", "Request an issue")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("item_id", type=int)
        cmd.add_argument("quantity", type=int)
        cmd.add_argument("--by", required=True, dest="actor")
        cmd.add_argument("--remarks")

    for name, help_text in (("process", "Process a pending issue"), ("cancel", "Cancel a pending issue")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("movement_id", type=int)
        cmd.add_argument("--by", required=True, dest="actor")

    show = sub.add_parser("show", help="Show one movement by id or code")
    show.add_argument("ref", help="Movement id or code")

    lst = sub.add_parser("list", help="List movements")
    lst.add_argument("--pending", action="store_true", help="Only the pending issue queue")
    lst.add_argument("--code")
    lst.add_argument("--item", type=int, dest="item_id")
    lst.add_argument("--direction", choices=[d.value for d in MovementDirection])
    lst.add_argument("--status", choices=[s.value for s in MovementStatus])
    lst.add_argument("--actor")
    lst.add_argument("--from", type=date.fromisoformat, dest="date_from", metavar="YYYY-MM-DD")
    lst.add_argument("--to", type=date.fromisoformat, dest="date_to", metavar="YYYY-MM-DD")
    lst.add_argument("--search")
    lst.add_argument("--sort", dest="sort_by")
    lst.add_argument("--desc", action="store_true", help="Descending order for --sort")
    lst.add_argument("--page", type=int, default=1)
    lst.add_argument("--page-size", type=int, dest="page_size")

    return p


def _add_item(args: argparse.Namespace) -> dict:
    with session_scope(operation="add_item") as session:
        item = Item(
            name=args.name.strip(),
            description=args.description,
            unit=args.unit,
            quantity=args.quantity,
            is_active=True,
        )
        session.add(item)
        session.flush()
        return asdict(ItemDTO.from_model(item))


def _run(args: argparse.Namespace, service) -> dict:
    if args.command == "init-db":
        create_tables()
        return {"status": "ok"}
    if args.command == "add-item":
        if not 0 <= args.quantity <= service.limits.max_quantity:
            raise argparse.ArgumentTypeError(
                f"--quantity must be between 0 and {service.limits.max_quantity}"
            )
        return _add_item(args)
    if args.command == "receive":
        return service.create_receipt(
            args.item_id, args.quantity, received_by=args.actor, remarks=args.remarks
        ).to_dict()
    if args.command == "issue":
        return service.create_issue(
            args.item_id, args.quantity, requested_by=args.actor, remarks=args.remarks
        ).to_dict()
    if args.command == "process":
        return service.process(args.movement_id, processed_by=args.actor).to_dict()
    if args.command == "cancel":
        return service.cancel(args.movement_id, cancelled_by=args.actor).to_dict()
    if args.command == "show":
        if args.ref.isdigit():
            return service.get_movement(int(args.ref)).to_dict()
        return service.get_movement_by_code(args.ref).to_dict()
    if args.command == "list":
        if args.pending:
            result = service.list_pending_issues(
                page=args.page,
                page_size=args.page_size,
                sort_by=args.sort_by,
                descending=args.desc,
            )
        else:
            result = service.list_movements(
                MovementQuery(
                    code=args.code,
                    direction=args.direction,
                    status=args.status,
                    item_id=args.item_id,
                    actor=args.actor,
                    date_from=args.date_from,
                    date_to=args.date_to,
                    search=args.search,
                    sort_by=args.sort_by,
                    descending=args.desc,
                    page=args.page,
                    page_size=args.page_size,
                )
            )
        return result.to_dict()
    raise AssertionError(f"unhandled command {args.command!r}")


def main(argv: list[str] | None = None, stdout=None, clock: Clock | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    out = stdout or sys.stdout

    service = initialize_ledger(get_active_config(path=args.config), clock=clock)

    try:
        payload = _run(args, service)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))
    except InventoryLedgerError as exc:
        json.dump({"error": exc.code, "message": str(exc)}, out, indent=2)
        out.write("\n")
        return 1
    finally:
        reset_engine()

    json.dump(payload, out, indent=2, default=str)
    out.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
