"""Tests for active wallet discovery and batch insider scans."""
import pytest

from insider_scanner.detection.scanner import WalletScanner


@pytest.fixture
def markets(market_factory):
    """Twelve resolved markets: outcome 0 wins in 0..10, outcome 1 wins in 11."""
    return [market_factory(condition_id=f"0xm{i}", winner=0 if i < 11 else 1) for i in range(12)]


@pytest.fixture
def wallets(trade_factory):
    def bets(wallet, outcomes):
        return [
            trade_factory("BUY", size=100, price="0.30", condition_id=f"0xm{i}", outcome_index=o, wallet=wallet)
            for i, o in enumerate(outcomes)
        ]

    return {
        # 11 of 12 right: 91.7% win rate
        "0xinsider": bets("0xinsider", [0] * 12),
        # 7 of 12 right
        "0xnormal": bets("0xnormal", [0, 1] * 6),
        # Too few resolved positions to judge
        "0xthin": bets("0xthin", [0, 0]),
    }


class TestFindActiveWallets:

    @pytest.mark.asyncio
    async def test_ranks_wallets_by_trade_count(self, fake_client_class, trade_factory):
        recent = (
            [trade_factory(wallet="0xa")] * 5
            + [trade_factory(wallet="0xb")] * 9
            + [trade_factory(wallet="0xc")] * 2
        )
        client = fake_client_class({}, [], recent_trades=recent)

        wallets = await WalletScanner(client).find_active_wallets(sample_size=100, limit=2)

        assert wallets == ["0xb", "0xa"]
        assert client.trade_requests == [(None, 100)]

    @pytest.mark.asyncio
    async def test_defaults_come_from_config(self, fake_client_class, default_config):
        default_config.scan.wallet_sample_size = 1234
        client = fake_client_class({}, [])

        assert await WalletScanner(client).find_active_wallets() == []
        assert client.trade_requests == [(None, 1234)]


class TestScanForInsiders:

    @pytest.mark.asyncio
    async def test_flags_insider_and_orders_results(self, fake_client_class, wallets, markets):
        client = fake_client_class(wallets, markets, failing_wallets={"0xdown"})

        reports = await WalletScanner(client).scan_for_insiders(
            ["0xnormal", "0xthin", "0xinsider", "0xdown"]
        )

        assert client.resolved_fetches == 1
        assert len(reports) == 4

        first = reports[0]
        assert first.wallet_address == "0xinsider"
        assert first.suspicious
        assert first.summary.wins == 11
        assert any(f.startswith("Extremely high win rate") for f in first.flags)

        by_wallet = {r.wallet_address: r for r in reports}
        assert not by_wallet["0xnormal"].suspicious
        assert by_wallet["0xnormal"].summary.wins == 7
        assert by_wallet["0xnormal"].summary.win_rate == pytest.approx(7 / 12 * 100)

        thin = by_wallet["0xthin"]
        assert not thin.suspicious
        assert thin.flags == ["Insufficient data (2 resolved positions)"]

        down = by_wallet["0xdown"]
        assert down.error is not None
        assert not down.analyzed

    @pytest.mark.asyncio
    async def test_uses_supplied_resolved_markets(self, fake_client_class, wallets, markets):
        client = fake_client_class(wallets, [])

        reports = await WalletScanner(client).scan_for_insiders(["0xinsider"], resolved_markets=markets)

        assert client.resolved_fetches == 0
        assert reports[0].suspicious

    @pytest.mark.asyncio
    async def test_wallet_without_trades(self, fake_client_class, markets):
        client = fake_client_class({}, markets)

        reports = await WalletScanner(client).scan_for_insiders(["0xghost"])

        assert reports[0].error == "No trades found"

    @pytest.mark.asyncio
    async def test_progress_callback(self, fake_client_class, wallets, markets):
        client = fake_client_class(wallets, markets)
        seen = []

        await WalletScanner(client).scan_for_insiders(
            list(wallets),
            on_wallet=lambda report, index, total: seen.append((index, total)),
        )

        assert sorted(seen) == [(1, 3), (2, 3), (3, 3)]

    @pytest.mark.asyncio
    async def test_empty_batch(self, fake_client_class):
        client = fake_client_class({}, [])

        assert await WalletScanner(client).scan_for_insiders([]) == []
        assert client.resolved_fetches == 0
