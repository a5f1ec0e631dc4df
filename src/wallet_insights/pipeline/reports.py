"""
Report builders: each folds one wallet's provider data into a JSON-ready
payload for the presentation layer.
"""

from dataclasses import asdict
from typing import Any, Dict, List, Tuple

from wallet_insights.models.analytics import BreakdownStat, InterpretedSwap
from wallet_insights.models.positions import PortfolioHistoryPoint
from wallet_insights.models.transactions import utc_datetime
from wallet_insights.pipeline.aggregation import (
    average_trade_interval_minutes,
    daily_pnl,
    direction_counts,
    hourly_activity,
    long_short_ratio,
    order_type_breakdown,
    platform_breakdown,
    position_metrics,
    session_stats,
    volume_and_fees,
    win_rate,
)
from wallet_insights.pipeline.common import (
    ReportBase,
    WalletServices,
    format_percentage,
    round_sol,
    round_usd,
    safe_value,
)
from wallet_insights.pipeline.statistics import (
    calculate_daily_returns,
    calculate_max_drawdown,
    calculate_sharpe_ratio,
    simulate_portfolio_history,
)
from wallet_insights.services.errors import ProviderError, WalletInsightsError


class WalletPnlReport(ReportBase):
    """Total PnL, position win rate and net worth from current positions."""

    def __init__(self, services: WalletServices, wallet: str):
        super().__init__("wallet_pnl", services, wallet)

    def _overall_roi(self) -> float:
        client = self.services.birdeye
        if client is None:
            return 0.0
        try:
            return float(client.get_wallet_pnl(self.wallet).get('overall_roi') or 0.0)
        except ProviderError as e:
            self.logger.warning(f"BirdEye ROI unavailable for {self.wallet}: {e}")
            return 0.0

    def execute(self) -> Dict[str, Any]:
        wallet_positions = self.services.mobula.get_wallet_positions(self.wallet)
        positions = wallet_positions.positions
        pnls = [p.total_pnl for p in positions]

        return {
            'wallet': self.wallet,
            'total_pnl': round_usd(sum(pnls)),
            'overall_roi': round_usd(self._overall_roi()),
            'win_rate': format_percentage(win_rate(pnls)),
            'total_positions': len(positions),
            'net_worth': round_usd(wallet_positions.net_worth),
        }


class TransactionsReport(ReportBase):
    """Interpreted swap table with SOL and USD values."""

    def __init__(self, services: WalletServices, wallet: str):
        super().__init__("transactions", services, wallet)

    @staticmethod
    def _row(swap: InterpretedSwap) -> Dict[str, Any]:
        moment = utc_datetime(swap.timestamp)
        row = {
            'signature': swap.signature,
            'timestamp': swap.timestamp,
            'date': moment.strftime('%Y-%m-%d %H:%M') if moment else '',
            'platform': swap.platform,
            'action': swap.action,
            'status': swap.status,
            'tokens': swap.token_symbols,
            'direction': swap.direction.value,
            'order_type': swap.order_type.value,
        }
        if swap.value_sol > 0:
            row['value_sol'] = round_sol(swap.value_sol)
        if swap.value_usd:
            row['value_usd'] = round_usd(swap.value_usd)
        return row

    def execute(self) -> Dict[str, Any]:
        transactions = self.fetch_transactions(limit=self.analytics.transactions_table_limit, tx_type='SWAP')
        sol_price = self.services.price_oracle.get_price()
        swaps = self.interpret(transactions, sol_price_usd=sol_price)

        return {
            'wallet': self.wallet,
            'transactions': [self._row(swap) for swap in swaps],
            'sol_price_usd': round_usd(sol_price),
        }


class TimeAnalysisReport(ReportBase):
    """Daily PnL, hourly activity and session performance."""

    def __init__(self, services: WalletServices, wallet: str):
        super().__init__("time_analysis", services, wallet)

    def execute(self) -> Dict[str, Any]:
        swaps = self.interpret(self.fetch_transactions())

        return {
            'wallet': self.wallet,
            'daily_pnl': [
                {'date': p.date, 'pnl': round_sol(p.pnl), 'tx_count': p.tx_count}
                for p in daily_pnl(swaps)
            ],
            'hourly_activity': [asdict(p) for p in hourly_activity(swaps)],
            'session_stats': [
                {
                    'session': s.session,
                    'start_hour': s.start_hour,
                    'end_hour': s.end_hour,
                    'tx_count': s.tx_count,
                    'total_pnl_sol': round_sol(s.total_pnl),
                    'avg_pnl_sol': round_sol(s.avg_pnl),
                    'win_rate': format_percentage(s.win_rate),
                }
                for s in session_stats(swaps)
            ],
        }


def _breakdown_row(stat: BreakdownStat, key: str) -> Dict[str, Any]:
    row = {
        key: stat.name,
        'count': stat.count,
        'percentage': f"{stat.percentage:.1f}",
        'total_pnl_sol': round_sol(stat.total_pnl),
        'avg_pnl_sol': round_sol(stat.avg_pnl),
        'win_rate': format_percentage(stat.win_rate),
    }
    if key == 'platform' and stat.order_type is not None:
        row['order_type'] = stat.order_type.value
    return row


class OrderAnalysisReport(ReportBase):
    """Swap counts and PnL per order type and per platform."""

    def __init__(self, services: WalletServices, wallet: str):
        super().__init__("order_analysis", services, wallet)

    def execute(self) -> Dict[str, Any]:
        swaps = self.interpret(self.fetch_transactions())

        return {
            'wallet': self.wallet,
            'order_types': [_breakdown_row(s, 'type') for s in order_type_breakdown(swaps)],
            'platforms': [_breakdown_row(s, 'platform') for s in platform_breakdown(swaps)],
            'total_swaps': len(swaps),
        }


class TradingMetricsReport(ReportBase):
    """Position-level win/loss statistics plus recent swap cadence."""

    def __init__(self, services: WalletServices, wallet: str):
        super().__init__("trading_metrics", services, wallet)

    def execute(self) -> Dict[str, Any]:
        positions = self.services.mobula.get_wallet_positions(self.wallet).positions
        swaps = self.interpret(self.fetch_transactions())

        metrics = position_metrics(positions)
        counts = direction_counts(swaps)
        interval = average_trade_interval_minutes(swaps)

        return {
            'wallet': self.wallet,
            'largest_gain': {
                'value_usd': safe_value(metrics.largest_gain_usd, 2),
                'symbol': metrics.largest_gain_symbol,
            },
            'largest_loss': {
                'value_usd': safe_value(metrics.largest_loss_usd, 2),
                'symbol': metrics.largest_loss_symbol,
            },
            'average_win_usd': safe_value(metrics.average_win_usd, 2),
            'average_loss_usd': safe_value(metrics.average_loss_usd, 2),
            'profit_factor': safe_value(metrics.profit_factor, 2),
            'total_positions': metrics.total_positions,
            'winning_positions': metrics.winning_positions,
            'losing_positions': metrics.losing_positions,
            'buys': counts['buys'],
            'sells': counts['sells'],
            'long_short_ratio': long_short_ratio(counts['buys'], counts['sells']),
            'avg_trade_interval_minutes': safe_value(interval, 1),
        }


class VolumeFeesReport(ReportBase):
    """Native volume and fee composition over all recent transactions."""

    def __init__(self, services: WalletServices, wallet: str):
        super().__init__("volume_fees", services, wallet)

    def execute(self) -> Dict[str, Any]:
        summary = volume_and_fees(self.fetch_transactions(), self.analytics.max_fee_slices)

        return {
            'wallet': self.wallet,
            'total_volume_sol': round_sol(summary.total_volume_sol),
            'total_fees_sol': round_sol(summary.total_fees_sol),
            'total_transactions': summary.total_transactions,
            'avg_fee_per_tx_sol': round_sol(summary.avg_fee_per_tx_sol),
            'fee_composition': [
                {
                    'name': item.name,
                    'value': round_sol(item.value),
                    'percentage': round(item.percentage, 2),
                }
                for item in summary.fee_composition
            ],
        }


class PortfolioHistoryReport(ReportBase):
    """Daily portfolio value with drawdown and Sharpe ratio.

    Falls back to a simulated series anchored on the current net worth when
    the history provider is unavailable.
    """

    def __init__(self, services: WalletServices, wallet: str):
        super().__init__("portfolio_history", services, wallet)

    def _current_net_worth(self) -> float:
        try:
            net_worth = self.services.mobula.get_wallet_positions(self.wallet).net_worth
        except WalletInsightsError as e:
            self.logger.warning(f"Net worth unavailable for {self.wallet}, using fallback: {e}")
            return self.analytics.fallback_net_worth_usd
        return net_worth if net_worth > 0 else self.analytics.fallback_net_worth_usd

    def _history(self) -> Tuple[List[PortfolioHistoryPoint], str]:
        try:
            return self.services.mobula.get_wallet_history(self.wallet, self.analytics.history_days), 'mobula'
        except WalletInsightsError as e:
            self.logger.warning(f"Portfolio history unavailable for {self.wallet}, simulating: {e}")

        history = simulate_portfolio_history(
            self._current_net_worth(),
            days=self.analytics.history_days,
            seed=self.analytics.simulation_seed
        )
        return history, 'simulated'

    def execute(self) -> Dict[str, Any]:
        history, source = self._history()
        drawdown = calculate_max_drawdown(history)
        sharpe = calculate_sharpe_ratio(
            calculate_daily_returns(history),
            risk_free_rate=self.analytics.risk_free_rate,
            trading_days=self.analytics.trading_days_per_year
        )

        return {
            'wallet': self.wallet,
            'source': source,
            'data': [asdict(point) for point in history],
            'max_drawdown': {
                'percentage': round(drawdown.percentage, 2),
                'peak': round_usd(drawdown.peak),
                'trough': round_usd(drawdown.trough),
                'peak_date': drawdown.peak_date,
                'trough_date': drawdown.trough_date,
            },
            'sharpe_ratio': sharpe,
        }
