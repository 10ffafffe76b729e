"""Unit tests for MaintenanceEngine.

Covers phase ordering, abort-on-first-error, and error wrapping.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from structlog.testing import capture_logs

from reclaimer.config import Settings
from reclaimer.drivers.base import ContainerSummary, VolumeSummary
from reclaimer.errors import PhaseFailedError, PruneFailedError, RemovalFailedError
from reclaimer.services.maintenance.base import MaintenancePhase, PhaseResult
from reclaimer.services.maintenance.engine import MaintenanceEngine
from reclaimer.services.maintenance.lifecycle import build_phases, create_engine
from tests.fakes import FakePruner


class RecordingPhase(MaintenancePhase):
    """Phase that records its runs into a shared list."""

    def __init__(self, name: str, log: list[str], error: Exception | None = None):
        self._name = name
        self._log = log
        self._error = error

    @property
    def name(self) -> str:
        return self._name

    async def run(self) -> PhaseResult:
        self._log.append(self._name)
        if self._error is not None:
            raise self._error
        return PhaseResult(cleaned_count=1)


def _settings(**overrides) -> Settings:
    values = {"remove_build_cache": True, "unused_volume_retention": 7}
    values.update(overrides)
    return Settings(**values)


def _populated_pruner() -> FakePruner:
    old = datetime.now(UTC) - timedelta(days=30)
    return FakePruner(
        containers=[
            ContainerSummary(id="c-run", status="Up 3 hours"),
            ContainerSummary(id="c-exit", status="Exited (0) 2 days ago"),
        ],
        volumes=[
            VolumeSummary(name="v-old", ref_count=0, created_at=old),
            VolumeSummary(name="v-used", ref_count=2, created_at=old),
        ],
    )


class TestMaintenanceEngine:
    """Tests for MaintenanceEngine with stub phases."""

    @pytest.mark.asyncio
    async def test_runs_phases_in_order(self):
        runs: list[str] = []
        engine = MaintenanceEngine(
            [RecordingPhase("a", runs), RecordingPhase("b", runs), RecordingPhase("c", runs)]
        )

        cycle = await engine.run_cycle()

        assert runs == ["a", "b", "c"]
        assert [p.phase_name for p in cycle.phases] == ["a", "b", "c"]
        assert cycle.total_cleaned == 3
        assert cycle.finished_at is not None

    @pytest.mark.asyncio
    async def test_failure_stops_later_phases(self):
        runs: list[str] = []
        cause = RuntimeError("boom")
        engine = MaintenanceEngine(
            [
                RecordingPhase("a", runs),
                RecordingPhase("b", runs, error=cause),
                RecordingPhase("c", runs),
            ]
        )

        with pytest.raises(PhaseFailedError) as exc_info:
            await engine.run_cycle()

        assert runs == ["a", "b"]
        assert exc_info.value.phase == "b"
        assert exc_info.value.__cause__ is cause
        assert "boom" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_wrapped_error_keeps_cause_details(self):
        engine = MaintenanceEngine(
            [RecordingPhase("volumes", [], error=RemovalFailedError("volume", "v1"))]
        )

        with pytest.raises(PhaseFailedError) as exc_info:
            await engine.run_cycle()

        details = exc_info.value.details
        assert details["phase"] == "volumes"
        assert details["cause_code"] == "removal_failed"
        assert details["target"] == "v1"

    @pytest.mark.asyncio
    async def test_failure_log_names_the_phase(self):
        with capture_logs() as logs:
            engine = MaintenanceEngine(
                [RecordingPhase("volumes", [], error=RemovalFailedError("volume", "v1"))]
            )
            with pytest.raises(PhaseFailedError):
                await engine.run_cycle()

        failed = [e for e in logs if e["event"] == "maintenance.phase.failed"]
        assert len(failed) == 1
        assert failed[0]["phase"] == "volumes"
        assert failed[0]["error_type"] == "RemovalFailedError"
        assert failed[0]["log_level"] == "error"

    @pytest.mark.asyncio
    async def test_empty_phase_list(self):
        cycle = await MaintenanceEngine([]).run_cycle()

        assert cycle.phases == []
        assert cycle.total_cleaned == 0


class TestEngineWithFakePruner:
    """Full cycles wired from settings against FakePruner."""

    def test_build_phases_order(self):
        phases = build_phases(FakePruner(), _settings())

        assert [p.name for p in phases] == ["build_cache", "dead_containers", "unused_volumes"]

    @pytest.mark.asyncio
    async def test_full_cycle(self):
        pruner = _populated_pruner()
        engine = create_engine(pruner, _settings())

        cycle = await engine.run_cycle()

        assert pruner.call_names() == [
            "prune_containers",
            "prune_images",
            "prune_networks",
            "prune_build_cache",
            "list_containers",
            "remove_container",
            "list_volumes",
            "remove_volume",
        ]
        assert [c.id for c in pruner.state.containers] == ["c-run"]
        assert [v.name for v in pruner.state.volumes] == ["v-used"]
        assert cycle.phases[2].skipped_count == 1

    @pytest.mark.asyncio
    async def test_disabled_build_cache_does_not_affect_other_phases(self):
        enabled = _populated_pruner()
        disabled = _populated_pruner()

        with_cache = await create_engine(enabled, _settings(remove_build_cache=True)).run_cycle()
        without_cache = await create_engine(
            disabled, _settings(remove_build_cache=False)
        ).run_cycle()

        assert without_cache.phases[0].skipped_phase is True
        assert not any(name.startswith("prune_") for name in disabled.call_names())
        assert without_cache.phases[1].removed == with_cache.phases[1].removed
        assert without_cache.phases[2].removed == with_cache.phases[2].removed

    @pytest.mark.asyncio
    async def test_build_cache_failure_skips_container_and_volume_phases(self):
        pruner = _populated_pruner()
        pruner.fail_prune.add("images")

        with pytest.raises(PhaseFailedError) as exc_info:
            await create_engine(pruner, _settings()).run_cycle()

        assert exc_info.value.phase == "build_cache"
        assert isinstance(exc_info.value.__cause__, PruneFailedError)
        assert "list_containers" not in pruner.call_names()
        assert "list_volumes" not in pruner.call_names()

    @pytest.mark.asyncio
    async def test_container_failure_skips_volume_phase(self):
        pruner = _populated_pruner()
        pruner.fail_remove.add("c-exit")

        with pytest.raises(PhaseFailedError) as exc_info:
            await create_engine(pruner, _settings(remove_build_cache=False)).run_cycle()

        assert exc_info.value.phase == "dead_containers"
        assert "list_volumes" not in pruner.call_names()
