"""
wagestream CLI -- one command per stream operation.

Every command opens the configured database, runs exactly one service
operation as the identities given by ``--as`` and prints the result as
JSON on stdout.  Rejections print ``{"error": CODE, "message": ...}`` on
stderr and exit with status 1.

examples:
    wagestream --as acme init --employer acme --token USDC
    wagestream mint --holder acme --amount 100000
    wagestream --as acme deposit --amount 50000
    wagestream --as acme hire alice --rate 100 --period hour
    wagestream --as alice withdraw alice --amount 250
    wagestream --as acme sweep-many alice bob
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from typing import Any

from wagestream_config import get_active_config
from wagestream_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from wagestream_kernel.domain.account import EmployeeAccount
from wagestream_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from wagestream_kernel.exceptions import WageStreamError
from wagestream_kernel.logging_config import configure_logging, get_logger
from wagestream_kernel.services.authorization import InvocationAuthorizer
from wagestream_kernel.services.token_ledger import SqlTokenLedger
from wagestream_kernel.services.unit_of_work import session_transaction
from wagestream_kernel.services.wiring import StreamStack, sql_stream

logger = get_logger("cli")

Handler = Callable[[StreamStack, argparse.Namespace], Any]


def _timestamp(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"timestamp must be non-negative, got {value}")
    return value


def _account(account: EmployeeAccount) -> dict[str, Any]:
    return {"employee_id": account.employee_id, **account.to_record()}


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_init(stack: StreamStack, args: argparse.Namespace) -> Any:
    stack.service.init(args.employer, args.token)
    return {"employer": args.employer, "token": args.token}


def _cmd_hire(stack: StreamStack, args: argparse.Namespace) -> Any:
    return _account(stack.service.hire(args.employee, args.rate, args.period))


def _cmd_update_rate(stack: StreamStack, args: argparse.Namespace) -> Any:
    return _account(stack.service.update_rate(args.employee, args.rate))


def _cmd_freeze(stack: StreamStack, args: argparse.Namespace) -> Any:
    return {"employee_id": args.employee, "paid": str(stack.service.freeze(args.employee))}


def _cmd_activate(stack: StreamStack, args: argparse.Namespace) -> Any:
    return _account(stack.service.activate(args.employee))


def _cmd_remove(stack: StreamStack, args: argparse.Namespace) -> Any:
    stack.service.remove(args.employee)
    return {"employee_id": args.employee, "removed": True}


def _cmd_list(stack: StreamStack, args: argparse.Namespace) -> Any:
    return {"employees": stack.service.list_employees()}


def _cmd_balance(stack: StreamStack, args: argparse.Namespace) -> Any:
    return {
        "employee_id": args.employee,
        "balance": str(stack.service.live_balance(args.employee)),
    }


def _cmd_info(stack: StreamStack, args: argparse.Namespace) -> Any:
    return stack.service.employee_info(args.employee).to_dict()


def _cmd_deposit(stack: StreamStack, args: argparse.Namespace) -> Any:
    stack.service.deposit(args.amount)
    return {"pool": str(stack.service.balance_of_contract())}


def _cmd_withdraw_surplus(stack: StreamStack, args: argparse.Namespace) -> Any:
    stack.service.withdraw_surplus(args.amount)
    return {"pool": str(stack.service.balance_of_contract())}


def _cmd_withdraw(stack: StreamStack, args: argparse.Namespace) -> Any:
    return _account(stack.service.withdraw(args.employee, args.amount))


def _cmd_pay_partial(stack: StreamStack, args: argparse.Namespace) -> Any:
    return _account(stack.service.pay_partial(args.employee, args.amount))


def _cmd_sweep(stack: StreamStack, args: argparse.Namespace) -> Any:
    return {"employee_id": args.employee, "paid": str(stack.service.sweep(args.employee))}


def _cmd_sweep_many(stack: StreamStack, args: argparse.Namespace) -> Any:
    result = stack.service.sweep_many(args.employees)
    return {"paid_count": result.paid_count, "total_amount": str(result.total_amount)}


def _cmd_pool(stack: StreamStack, args: argparse.Namespace) -> Any:
    return {"pool": str(stack.service.balance_of_contract())}


def _cmd_fix_timestamp(stack: StreamStack, args: argparse.Namespace) -> Any:
    return _account(stack.service.fix_timestamp(args.employee))


def _cmd_history(stack: StreamStack, args: argparse.Namespace) -> Any:
    events = stack.service.history(args.employee)
    return {
        "events": [e.to_dict() for e in events],
        "broken_at": stack.service.verify_history(),
    }


def _cmd_mint(stack: StreamStack, args: argparse.Namespace) -> Any:
    # Development faucet: credits the ledger directly, outside the service.
    ledger = stack.ledger
    if not isinstance(ledger, SqlTokenLedger):
        raise TypeError("mint requires a SQL-backed token ledger")
    with session_transaction(ledger.session):
        ledger.mint(args.holder, args.amount)
    return {"holder": args.holder, "balance": str(ledger.balance(args.holder))}


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wagestream",
        description="Continuous wage streaming from a funded pool.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("examples:", 1)[1] if __doc__ else None,
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="YAML configuration file (default: bundled sets/default.yaml)",
    )
    parser.add_argument(
        "--db-url", type=str, default=None,
        help="Database URL (overrides database.url from the configuration)",
    )
    parser.add_argument(
        "--as", dest="as_", action="append", default=[], metavar="IDENTITY",
        help="Identity that authorizes this invocation (repeatable)",
    )
    parser.add_argument(
        "--now", type=_timestamp, default=None,
        help="Ledger timestamp in unix seconds (default: wall clock)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    def command(name: str, handler: Handler, help_text: str) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help_text)
        p.set_defaults(handler=handler)
        return p

    p = command("init", _cmd_init, "Configure the employer and pool token (once)")
    p.add_argument("--employer", required=True)
    p.add_argument("--token", required=True)

    p = command("hire", _cmd_hire, "Add an employee")
    p.add_argument("employee")
    p.add_argument("--rate", type=int, required=True)
    p.add_argument("--period", default="hour", help="hour, day, week or month")

    p = command("update-rate", _cmd_update_rate, "Change an employee's wage rate")
    p.add_argument("employee")
    p.add_argument("--rate", type=int, required=True)

    for name, handler, help_text in (
        ("freeze", _cmd_freeze, "Pay out and stop accrual"),
        ("activate", _cmd_activate, "Resume accrual"),
        ("remove", _cmd_remove, "Remove a frozen, fully paid employee"),
        ("balance", _cmd_balance, "Total owed to an employee now"),
        ("info", _cmd_info, "Full account snapshot"),
        ("sweep", _cmd_sweep, "Pay out everything owed to one employee"),
        ("fix-timestamp", _cmd_fix_timestamp, "Repair a zero accrual checkpoint"),
    ):
        command(name, handler, help_text).add_argument("employee")

    command("list", _cmd_list, "List employees in hire order")
    command("pool", _cmd_pool, "Pool balance")

    for name, handler, help_text in (
        ("deposit", _cmd_deposit, "Move funds from the employer into the pool"),
        ("withdraw-surplus", _cmd_withdraw_surplus, "Return pool funds to the employer"),
    ):
        command(name, handler, help_text).add_argument("--amount", type=int, required=True)

    for name, handler, help_text in (
        ("withdraw", _cmd_withdraw, "Employee withdrawal"),
        ("pay-partial", _cmd_pay_partial, "Employer partial payment"),
    ):
        p = command(name, handler, help_text)
        p.add_argument("employee")
        p.add_argument("--amount", type=int, required=True)

    p = command("sweep-many", _cmd_sweep_many, "All-or-nothing sweep over employees")
    p.add_argument("employees", nargs="+")

    p = command("history", _cmd_history, "Journal of committed operations")
    p.add_argument("employee", nargs="?", default=None)

    p = command("mint", _cmd_mint, "Credit tokens to a holder (development faucet)")
    p.add_argument("--holder", required=True)
    p.add_argument("--amount", type=int, required=True)

    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = get_active_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 2

    configure_logging(level=config.log_level, stream=sys.stderr)
    init_engine_from_url(args.db_url or config.database_url, echo=config.sql_echo)
    create_tables()

    clock: Clock = DeterministicClock(args.now) if args.now is not None else SystemClock()
    authorizer = InvocationAuthorizer()
    session = get_session()
    try:
        stack = sql_stream(
            session,
            clock=clock,
            authorizer=authorizer,
            pool_holder=config.pool_holder,
        )
        with authorizer.signed_by(*args.as_):
            result = args.handler(stack, args)
    except WageStreamError as exc:
        logger.info("cli_command_failed", extra={"command": args.command, "error_code": exc.code})
        print(json.dumps({"error": exc.code, "message": str(exc)}), file=sys.stderr)
        return 1
    finally:
        session.close()
        reset_engine()

    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
