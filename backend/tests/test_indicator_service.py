"""Tests for the indicator computation service."""

from datetime import datetime, timedelta, timezone

import pytest

from signalcore.indicators import (
    BollingerBandsRequest,
    IndicatorCache,
    IndicatorKind,
    IndicatorService,
    IndicatorValidationError,
    MacdRequest,
    PeriodRequest,
    SmaCalculator,
    build_cache_key,
    calculator_identity,
    data_fingerprint,
)
from signalcore.models import PriceBar

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _make_prices(n: int, base: float = 100.0) -> list[PriceBar]:
    return [
        PriceBar(
            timestamp=START + timedelta(hours=i),
            average=base + (i % 5) + i * 0.1,
            high=base + (i % 5) + i * 0.1 + 1,
            low=base + (i % 5) + i * 0.1 - 1,
        )
        for i in range(n)
    ]


class _ConstantCalculator:
    """Calculator override returning a fixed value for every bar."""

    kind = IndicatorKind.SMA

    def __init__(self, value: float = 42.0):
        self.value = value
        self.calls = 0

    def calculate(self, options):
        self.calls += 1
        return [self.value] * len(options.values)

    def get_warmup_period(self, **params):
        return 0

    def validate_options(self, options):
        pass


class _Provider:
    def __init__(self, calculator):
        self.calculator = calculator

    def get_custom_calculator(self, kind):
        return self.calculator if kind == self.calculator.kind else None


class TestCacheKeys:
    """Tests for cache key construction."""

    def test_key_format(self):
        prices = _make_prices(30)
        key = build_cache_key(IndicatorKind.MACD, "btc", prices, {"slowPeriod": 26, "fastPeriod": 12})

        assert key.startswith("indicator:macd:btc:fastPeriod:12_slowPeriod:26:")
        assert len(key.rsplit(":", 1)[1]) == 8

    def test_appended_bar_changes_fingerprint(self):
        prices = _make_prices(30)

        assert data_fingerprint(prices) != data_fingerprint(_make_prices(31))
        assert data_fingerprint(prices) == data_fingerprint(_make_prices(30))

    def test_revised_last_bar_changes_fingerprint(self):
        prices = _make_prices(30)
        revised = prices[:-1] + [prices[-1].model_copy(update={"average": 999.0})]

        assert data_fingerprint(prices) != data_fingerprint(revised)


class TestIndicatorServiceCaching:
    """Tests for cache use, skip_cache and provider overrides."""

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(self):
        service = IndicatorService()
        request = PeriodRequest(asset_id="btc", prices=_make_prices(40), period=14)

        first = await service.calculate_rsi(request)
        second = await service.calculate_rsi(request)

        assert first.from_cache is False
        assert second.from_cache is True
        assert first.values == second.values
        assert service.cache_stats().hits == 1

    @pytest.mark.asyncio
    async def test_skip_cache_recomputes_and_refreshes(self):
        service = IndicatorService()
        prices = _make_prices(40)

        await service.calculate_sma(PeriodRequest(asset_id="btc", prices=prices, period=10))
        fresh = await service.calculate_sma(
            PeriodRequest(asset_id="btc", prices=prices, period=10, skip_cache=True)
        )
        cached = await service.calculate_sma(PeriodRequest(asset_id="btc", prices=prices, period=10))

        assert fresh.from_cache is False
        assert cached.from_cache is True

    @pytest.mark.asyncio
    async def test_different_params_do_not_collide(self):
        service = IndicatorService()
        prices = _make_prices(40)

        ema10 = await service.calculate_ema(PeriodRequest(asset_id="btc", prices=prices, period=10))
        ema20 = await service.calculate_ema(PeriodRequest(asset_id="btc", prices=prices, period=20))

        assert ema20.from_cache is False
        assert ema10.values != ema20.values

    @pytest.mark.asyncio
    async def test_disabled_cache(self):
        service = IndicatorService(use_cache=False)
        request = PeriodRequest(asset_id="btc", prices=_make_prices(40), period=14)

        await service.calculate_rsi(request)
        second = await service.calculate_rsi(request)

        assert second.from_cache is False
        assert service.cache_stats().size == 0

    @pytest.mark.asyncio
    async def test_provider_override_consulted_every_call(self):
        service = IndicatorService()
        calculator = _ConstantCalculator()
        provider = _Provider(calculator)
        request = PeriodRequest(asset_id="btc", prices=_make_prices(30), period=10)

        default = await service.calculate_sma(request)
        overridden = await service.calculate_sma(request, provider)

        assert overridden.from_cache is False
        assert overridden.values == (42.0,) * 30
        assert default.values != overridden.values
        assert calculator.calls == 1

    @pytest.mark.asyncio
    async def test_differently_configured_overrides_do_not_share_entries(self):
        service = IndicatorService()
        request = PeriodRequest(asset_id="btc", prices=_make_prices(30), period=10)

        ones, twos = _ConstantCalculator(1.0), _ConstantCalculator(2.0)

        first = await service.calculate_sma(request, _Provider(ones))
        second = await service.calculate_sma(request, _Provider(twos))

        assert first.values == (1.0,) * 30
        assert second.values == (2.0,) * 30
        assert second.from_cache is False

    @pytest.mark.asyncio
    async def test_overrides_with_same_identity_share_entries(self):
        service = IndicatorService()
        request = PeriodRequest(asset_id="btc", prices=_make_prices(30), period=10)
        first_calculator = _ConstantCalculator(7.0)
        second_calculator = _ConstantCalculator(7.0)
        first_calculator.cache_identity = second_calculator.cache_identity = "value=7"

        await service.calculate_sma(request, _Provider(first_calculator))
        result = await service.calculate_sma(request, _Provider(second_calculator))

        assert result.from_cache is True
        assert second_calculator.calls == 0

    def test_calculator_identity(self):
        calculator = _ConstantCalculator()

        assert calculator_identity(calculator).endswith(f"_ConstantCalculator@{id(calculator):x}")
        calculator.cache_identity = "fixed"
        assert calculator_identity(calculator).endswith("_ConstantCalculator@fixed")

    @pytest.mark.asyncio
    async def test_provider_returning_none_uses_default(self):
        service = IndicatorService()
        provider = _Provider(_ConstantCalculator())
        request = PeriodRequest(asset_id="btc", prices=_make_prices(30), period=10)

        result = await service.calculate_ema(request, provider)

        assert result.values[:9] == (None,) * 9
        assert result.valid_count == 21

    @pytest.mark.asyncio
    async def test_clear_cache(self):
        service = IndicatorService(cache=IndicatorCache(max_entries=10))
        await service.calculate_sma(PeriodRequest(asset_id="btc", prices=_make_prices(30), period=5))

        assert await service.clear_cache() == 1
        assert service.cache_stats().size == 0


class TestIndicatorServiceResults:
    """Tests for result shapes and error propagation."""

    @pytest.mark.asyncio
    async def test_series_aligned_with_prices(self):
        service = IndicatorService()
        prices = _make_prices(60)

        macd = await service.calculate_macd(MacdRequest(asset_id="btc", prices=prices))
        bands = await service.calculate_bollinger_bands(
            BollingerBandsRequest(asset_id="btc", prices=prices)
        )
        atr = await service.calculate_atr(PeriodRequest(asset_id="btc", prices=prices, period=14))

        assert len(macd.macd) == len(macd.histogram) == 60
        assert len(bands.percent_b) == len(bands.bandwidth) == 60
        assert len(atr.values) == 60
        assert atr.values[13] is None
        assert atr.values[14] is not None
        assert bands.valid_count == 41

    @pytest.mark.asyncio
    async def test_validation_errors_propagate(self):
        service = IndicatorService()

        with pytest.raises(IndicatorValidationError):
            await service.calculate_sma(PeriodRequest(asset_id="btc", prices=_make_prices(5), period=20))

    @pytest.mark.asyncio
    async def test_failed_computation_is_not_cached(self):
        service = IndicatorService()
        request = PeriodRequest(asset_id="btc", prices=_make_prices(5), period=20)

        for _ in range(2):
            with pytest.raises(IndicatorValidationError):
                await service.calculate_sma(request)
        assert service.cache_stats().size == 0

    def test_warmup_helpers(self):
        service = IndicatorService(calculators={IndicatorKind.SMA: SmaCalculator()})

        assert service.get_warmup_period(IndicatorKind.SMA, period=20) == 19
        assert service.has_enough_data(IndicatorKind.SMA, 20, period=20) is True
        assert service.has_enough_data(IndicatorKind.SMA, 19, period=20) is False

    def test_unknown_kind(self):
        service = IndicatorService(calculators={IndicatorKind.SMA: SmaCalculator()})

        with pytest.raises(KeyError):
            service.get_warmup_period(IndicatorKind.RSI, period=14)
