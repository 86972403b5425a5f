"""
CLI entry point: fxrisk analyze | check | status | monitor | stop | resume | health.

Every command loads config from --config (default config.yaml), reads the
book file it points to, prints a human-readable report, and logs to the journal.
"""

import logging
import sys
from datetime import datetime, timezone

import click
from dotenv import load_dotenv

from config import load_config

load_dotenv()

logger = logging.getLogger("fxrisk")


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """fxrisk: pre-trade risk gate and trade performance analytics for FX accounts."""
    _setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def _build_gate(cfg, risk_cfg, book):
    from cli.structured_log import StructuredEventLogger
    from journal import JournalWriter
    from risk_core.risk_gate import RiskGate

    journal = JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout)
    notifier = StructuredEventLogger(
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    gate = RiskGate(
        risk_cfg.limits,
        positions=book.positions,
        notifier=notifier,
        event_sink=journal,
        contract_multiplier=risk_cfg.pnl.contract_multiplier,
        epsilon=risk_cfg.pnl.close_epsilon,
        emergency_stopped=book.halted,
    )
    return gate, journal, notifier


# ---------- fxrisk analyze ----------


@cli.command()
@click.option("--strategy", "strategy_id", default=None, help="Strategy id (default: every strategy in the book).")
@click.option("--days", default=None, type=int, help="Lookback window in days (default: from risk config).")
@click.option("--journal-trades", is_flag=True, help="Append each reconstructed trade to the journal.")
@click.pass_context
def analyze(ctx: click.Context, strategy_id: str | None, days: int | None, journal_trades: bool) -> None:
    """Reconstruct trades from fills and report performance per strategy."""
    cfg = load_config(ctx.obj["config_path"])
    from cli.output import format_performance
    from config.risk_config import load_risk_config
    from data import load_book
    from journal import JournalWriter
    from risk_core.contracts import StrategyContext
    from risk_core.performance import strategy_performance

    risk_cfg = load_risk_config(cfg.risk_config_path)
    book = load_book(cfg.book.path)
    lookback = days if days is not None else risk_cfg.analytics.lookback_days

    if strategy_id:
        strategies = [book.strategies.get(strategy_id) or StrategyContext(id=strategy_id, name=strategy_id)]
    else:
        strategies = list(book.strategies.values())
    if not strategies:
        click.echo("No strategies in book.")
        return

    journal = JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout) if journal_trades else None
    fills = book.positions.fills()
    for i, strategy in enumerate(strategies):
        perf = strategy_performance(
            strategy,
            fills,
            days=lookback,
            contract_multiplier=risk_cfg.pnl.contract_multiplier,
            epsilon=risk_cfg.pnl.close_epsilon,
            periods_per_year=risk_cfg.analytics.periods_per_year,
        )
        if i:
            click.echo("")
        click.echo(format_performance(perf))
        if journal:
            for trade in perf.trades:
                journal.trade(trade)


# ---------- fxrisk check ----------


@cli.command()
@click.option("--account", "account_id", required=True, help="Account id.")
@click.option("--strategy", "strategy_id", required=True, help="Strategy id.")
@click.option("--symbol", required=True, help="Instrument, e.g. EURUSD.")
@click.option("--side", type=click.Choice(["BUY", "SELL"], case_sensitive=False), required=True)
@click.option("--qty", "quantity", type=float, required=True, help="Quantity (lots).")
@click.option("--price", type=float, default=None, help="Limit/indicative price.")
@click.pass_context
def check(
    ctx: click.Context,
    account_id: str,
    strategy_id: str,
    symbol: str,
    side: str,
    quantity: float,
    price: float | None,
) -> None:
    """Run the pre-trade risk gate for one proposed trade.

    Exit code 0 = approved, 2 = rejected.
    """
    cfg = load_config(ctx.obj["config_path"])
    from cli.output import format_check_result
    from config.risk_config import load_risk_config
    from data import load_book
    from risk_core.contracts import Side, Signal

    risk_cfg = load_risk_config(cfg.risk_config_path, account=account_id)
    book = load_book(cfg.book.path)
    gate, journal, notifier = _build_gate(cfg, risk_cfg, book)

    signal = Signal(
        symbol=symbol.upper(),
        side=Side(side.upper()),
        quantity=quantity,
        price=price,
        strategy_id=strategy_id,
    )
    result = gate.validate_trade(
        signal,
        book.strategies.get(strategy_id),
        book.positions.snapshot(account_id),
    )
    journal.check(signal, result, account_id)
    notifier.trade_checked(account_id, signal.symbol, signal.side.value, quantity, result.approved, result.reason)
    click.echo(format_check_result(signal, result))
    raise SystemExit(0 if result.approved else 2)


# ---------- fxrisk status ----------


@cli.command()
@click.option("--account", "account_id", required=True, help="Account id.")
@click.pass_context
def status(ctx: click.Context, account_id: str) -> None:
    """Show limit utilization for one account."""
    cfg = load_config(ctx.obj["config_path"])
    from cli.output import format_risk_status
    from config.risk_config import load_risk_config
    from data import load_book
    from risk_core.risk_status import build_risk_status

    risk_cfg = load_risk_config(cfg.risk_config_path, account=account_id)
    book = load_book(cfg.book.path)
    snapshot = book.positions.snapshot(account_id)
    if snapshot is None:
        click.echo(f"No active account found: {account_id}")
        raise SystemExit(1)

    risk_status = build_risk_status(
        snapshot,
        risk_cfg.limits.apply(snapshot.risk_profile),
        today=datetime.now(timezone.utc).date(),
        contract_multiplier=risk_cfg.pnl.contract_multiplier,
        epsilon=risk_cfg.pnl.close_epsilon,
    )
    click.echo(format_risk_status(account_id, risk_status))
    if book.halted:
        click.echo("Trading    : HALTED (emergency stop active)")


# ---------- fxrisk monitor ----------


@cli.command()
@click.option("--account", "account_id", required=True, help="Account id.")
@click.pass_context
def monitor(ctx: click.Context, account_id: str) -> None:
    """Replay daily realized P&L through the risk monitor and report.

    Exit code 0 = no alerts, 1 = unknown account, 2 = alerts raised.
    """
    cfg = load_config(ctx.obj["config_path"])
    from cli.output import format_monitor_report
    from cli.structured_log import StructuredEventLogger
    from config.risk_config import load_risk_config
    from data import load_book
    from risk_core.risk_monitor import RiskMonitor
    from risk_core.trade_reconstructor import reconstruct

    risk_cfg = load_risk_config(cfg.risk_config_path, account=account_id)
    book = load_book(cfg.book.path)
    snapshot = book.positions.snapshot(account_id)
    if snapshot is None:
        click.echo(f"No active account found: {account_id}")
        raise SystemExit(1)

    notifier = StructuredEventLogger(
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    trades = reconstruct(
        snapshot.fills,
        contract_multiplier=risk_cfg.pnl.contract_multiplier,
        epsilon=risk_cfg.pnl.close_epsilon,
    )
    risk_monitor = RiskMonitor(risk_cfg.monitor, notifier=notifier)
    alerts = risk_monitor.replay(snapshot, trades)
    click.echo(format_monitor_report(account_id, risk_monitor.report(snapshot), alerts))
    raise SystemExit(2 if alerts else 0)


# ---------- fxrisk stop ----------


@cli.command()
@click.option("--yes", is_flag=True, help="Skip confirmation.")
@click.pass_context
def stop(ctx: click.Context, yes: bool) -> None:
    """Emergency stop: halt all trading and mark every open position closed."""
    cfg = load_config(ctx.obj["config_path"])
    from cli.output import format_emergency_stop
    from config.risk_config import load_risk_config
    from data import load_book, save_book

    if not yes:
        click.confirm("Halt all trading and mark every open position closed?", abort=True)

    risk_cfg = load_risk_config(cfg.risk_config_path)
    book = load_book(cfg.book.path)
    gate, journal, notifier = _build_gate(cfg, risk_cfg, book)

    report = gate.emergency_stop()
    book.halted = True
    save_book(book, cfg.book.path)
    journal.emergency_stop(report)
    notifier.emergency_stop(closed=len(report.closed), failed=len(report.failed))
    click.echo(format_emergency_stop(report))


# ---------- fxrisk resume ----------


@cli.command()
@click.option("--operator", required=True, help="Name of the operator clearing the stop.")
@click.pass_context
def resume(ctx: click.Context, operator: str) -> None:
    """Clear an emergency stop. Closed positions stay closed."""
    cfg = load_config(ctx.obj["config_path"])
    from config.risk_config import load_risk_config
    from data import load_book, save_book

    risk_cfg = load_risk_config(cfg.risk_config_path)
    book = load_book(cfg.book.path)
    if not book.halted:
        click.echo("Trading is not halted.")
        return

    gate, _, _ = _build_gate(cfg, risk_cfg, book)
    gate.reset_emergency_stop(operator)
    book.halted = False
    save_book(book, cfg.book.path)
    click.echo(f"Emergency stop cleared by {operator}. Trading resumed.")


# ---------- fxrisk health ----------


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check system health: config, risk config, book file, halt flag.

    Exit code 0 = healthy, 1 = unhealthy.
    """
    checks: list[tuple[str, bool, str]] = []

    try:
        cfg = load_config(ctx.obj["config_path"])
        checks.append(("config", True, f"loaded ({ctx.obj['config_path']})"))
    except Exception as e:
        checks.append(("config", False, str(e)))
        _print_health(checks)
        raise SystemExit(1)

    try:
        from config.risk_config import load_risk_config
        risk_cfg = load_risk_config(cfg.risk_config_path)
        checks.append(("risk_config", True, f"validated (version {risk_cfg.version})"))
    except Exception as e:
        checks.append(("risk_config", False, str(e)))

    try:
        from data import load_book
        book = load_book(cfg.book.path)
        n_accounts = len(book.positions.accounts())
        n_open = len(book.positions.open_positions())
        checks.append(("book", True, f"{n_accounts} account(s), {n_open} open position(s)"))
        if book.halted:
            checks.append(("trading", False, "emergency stop active"))
        else:
            checks.append(("trading", True, "active"))
    except Exception as e:
        checks.append(("book", False, str(e)))

    _print_health(checks)
    healthy = all(ok for _, ok, _ in checks)
    raise SystemExit(0 if healthy else 1)


def _print_health(checks: list[tuple[str, bool, str]]) -> None:
    for name, ok, detail in checks:
        status = "OK" if ok else "FAIL"
        click.echo(f"  [{status}] {name}: {detail}")
    healthy = all(ok for _, ok, _ in checks)
    click.echo(f"\nHealth: {'HEALTHY' if healthy else 'UNHEALTHY'}")


if __name__ == "__main__":
    cli()
