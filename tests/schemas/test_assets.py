import pytest

from src.schemas.assets import FieldKind, ImageReference, MirrorOutcome, MirrorStats, MirrorStatus

REFERENCE = ImageReference(
    source_url="https://prod-files-secure.s3.amazonaws.com/a.png",
    owner_document_id="page-1",
    field_kind=FieldKind.PAGE_ICON,
    field_name="icon",
)


class TestMirrorStatus:
    @pytest.mark.parametrize(
        "status",
        [MirrorStatus.SKIPPED_ALREADY_OPTIMIZED, MirrorStatus.SKIPPED_IRRELEVANT, MirrorStatus.SKIPPED_FAILED],
    )
    def test_skips(self, status: MirrorStatus) -> None:
        assert status.is_skip

    @pytest.mark.parametrize("status", [MirrorStatus.PROCESSED, MirrorStatus.ERRORED])
    def test_non_skips(self, status: MirrorStatus) -> None:
        assert not status.is_skip


class TestMirrorStats:
    def test_record_counts_each_status(self) -> None:
        stats = MirrorStats()
        for status in MirrorStatus:
            stats.record(MirrorOutcome(REFERENCE, status, original_size=100, optimized_size=40))

        assert (stats.processed, stats.skipped, stats.errors) == (1, 3, 1)
        assert stats.original_total_size == 100
        assert stats.optimized_total_size == 40
        assert stats.savings_percent == pytest.approx(60.0)

    def test_savings_without_processed_images(self) -> None:
        assert MirrorStats(skipped=2).savings_percent == 0.0
