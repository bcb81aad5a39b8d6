"""
Tests for the streaming record extractor.
"""

from pathlib import Path

import pytest

from coverage_lens.core.errors import ReportAccessError
from coverage_lens.core.extractor import extract_file_tag, scan_for_record
from coverage_lens.core.matcher import SearchMode, build_start_pattern
from coverage_lens.io.reports import open_report_lines


async def stream(lines):
    for line in lines:
        yield line


class TrackingLines:
    """Async iterable recording how many lines were consumed."""

    def __init__(self, lines):
        self.lines = lines
        self.consumed = 0

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for line in self.lines:
            self.consumed += 1
            yield line


REPORT_LINES = [
    "<coverage>\n",
    '  <file name="A.ts" path="/src/A.ts">\n',
    '    <line num="1" count="1" type="stmt"/>\n',
    "  </file>\n",
    '  <file name="B.ts" path="/src/B.ts">\n',
    '    <line num="2" count="0" type="stmt"/>\n',
    "  </file>\n",
    '  <file name="B.go" path="/pkg/B.go">\n',
    "  </file>\n",
    "</coverage>\n",
]


class TestScanForRecord:

    @pytest.mark.asyncio
    async def test_captures_record_inclusive_of_markers(self):
        pattern = build_start_pattern("B", SearchMode.BY_NAME)
        record = await scan_for_record(stream(REPORT_LINES), pattern)
        assert record == "".join(REPORT_LINES[4:7])

    @pytest.mark.asyncio
    async def test_first_match_wins_and_stops_early(self):
        lines = TrackingLines(REPORT_LINES)
        pattern = build_start_pattern("B", SearchMode.BY_NAME)
        record = await scan_for_record(lines, pattern)
        assert 'name="B.ts"' in record
        assert "B.go" not in record
        assert lines.consumed == 7

    @pytest.mark.asyncio
    async def test_no_match_returns_none(self):
        pattern = build_start_pattern("Missing", SearchMode.BY_NAME)
        assert await scan_for_record(stream(REPORT_LINES), pattern) is None

    @pytest.mark.asyncio
    async def test_unclosed_record_returns_none(self):
        lines = REPORT_LINES[:6]
        pattern = build_start_pattern("B", SearchMode.BY_NAME)
        assert await scan_for_record(stream(lines), pattern) is None

    @pytest.mark.asyncio
    async def test_single_line_record(self):
        lines = ['<file name="C.ts" path="/src/C.ts"><line num="1"/></file>\n', "</coverage>\n"]
        pattern = build_start_pattern("C.ts", SearchMode.BY_NAME)
        assert await scan_for_record(stream(lines), pattern) == lines[0]

    @pytest.mark.asyncio
    async def test_line_terminators_preserved(self):
        lines = ['<file name="D.ts" path="/D.ts">\r\n', "</file>\r\n"]
        pattern = build_start_pattern("D", SearchMode.BY_NAME)
        assert await scan_for_record(stream(lines), pattern) == "".join(lines)

    @pytest.mark.asyncio
    async def test_empty_input(self):
        pattern = build_start_pattern("A", SearchMode.BY_NAME)
        assert await scan_for_record(stream([]), pattern) is None

    @pytest.mark.asyncio
    async def test_custom_closing_marker(self):
        lines = ['<class name="K.java" path="/K.java">\n', "  <line/>\n", "</class>\n"]
        pattern = build_start_pattern("K", SearchMode.BY_NAME, record_tag="class")
        assert await scan_for_record(stream(lines), pattern, "</class>") == "".join(lines)


class TestExtractFileTag:

    @pytest.mark.asyncio
    async def test_extract_by_name(self, report_path, sample_report_text):
        record = await extract_file_tag(report_path, "Utils", SearchMode.BY_NAME)
        assert record.startswith('      <file name="Utils.ts" path="/home/dev/app/src/Utils.ts">\n')
        assert record.endswith("      </file>\n")
        assert record in sample_report_text

    @pytest.mark.asyncio
    async def test_extension_target_skips_longer_names(self, report_path):
        record = await extract_file_tag(report_path, "Button.ts", SearchMode.BY_NAME)
        assert 'name="Button.ts"' in record
        assert "Button.spec.ts" not in record

    @pytest.mark.asyncio
    async def test_bare_target_takes_first_extension_match(self, report_path):
        record = await extract_file_tag(report_path, "Button", SearchMode.BY_NAME)
        assert 'name="Button.spec.ts"' in record

    @pytest.mark.asyncio
    async def test_regex_special_target(self, report_path):
        record = await extract_file_tag(report_path, "a+b.js", SearchMode.BY_NAME)
        assert 'name="a+b.js"' in record
        assert "aab.js" not in record

    @pytest.mark.asyncio
    async def test_path_mode_finds_what_name_mode_misses(self, report_path):
        assert await extract_file_tag(report_path, "components/Header", SearchMode.BY_NAME) is None
        record = await extract_file_tag(report_path, "components/Header", SearchMode.BY_PATH)
        assert 'name="Header.vue"' in record

    @pytest.mark.asyncio
    async def test_repeated_extraction_is_identical(self, report_path):
        first = await extract_file_tag(report_path, "Header", SearchMode.BY_NAME)
        second = await extract_file_tag(report_path, "Header", SearchMode.BY_NAME)
        assert first == second

    @pytest.mark.asyncio
    async def test_missing_report_is_access_error(self, tmp_path):
        missing = tmp_path / "nope.xml"
        with pytest.raises(ReportAccessError) as exc_info:
            await extract_file_tag(missing, "Utils")
        assert exc_info.value.path == str(missing)
        assert exc_info.value.to_payload()["code"] == "report_path_invalid"

    @pytest.mark.asyncio
    async def test_directory_is_access_error(self, tmp_path):
        with pytest.raises(ReportAccessError):
            await extract_file_tag(tmp_path, "Utils")

    @pytest.mark.asyncio
    async def test_stray_byte_does_not_hide_earlier_record(self, tmp_path):
        report = tmp_path / "clover.xml"
        report.write_bytes(
            b"<coverage>\n"
            b'  <file name="Utils.ts" path="/src/Utils.ts">\n'
            b'    <line num="1" count="1" type="stmt"/>\n'
            b"  </file>\n"
            b'  <file name="Caf\xe9.ts" path="/src/Caf\xe9.ts">\n'
            b"  </file>\n"
            b"</coverage>\n"
        )
        record = await extract_file_tag(report, "Utils")
        assert record == (
            '  <file name="Utils.ts" path="/src/Utils.ts">\n'
            '    <line num="1" count="1" type="stmt"/>\n'
            "  </file>\n"
        )
        record = await extract_file_tag(report, "/src/Caf", SearchMode.BY_PATH)
        assert 'name="Caf\ufffd.ts"' in record

    @pytest.mark.asyncio
    async def test_strict_decoding_is_access_error(self, tmp_path):
        bad = tmp_path / "clover.xml"
        bad.write_bytes(b'<file name="\xff\xfe.ts">\n</file>\n')
        with pytest.raises(ReportAccessError) as exc_info:
            await extract_file_tag(bad, "Utils", errors="strict")
        assert exc_info.value.reason

    @pytest.mark.asyncio
    async def test_record_spanning_read_blocks(self, report_path, sample_report_text, monkeypatch):
        monkeypatch.setattr("coverage_lens.io.reports.READ_HINT", 1)
        record = await extract_file_tag(report_path, "Header")
        assert 'name="Header.vue"' in record
        assert record in sample_report_text


class TestResourceRelease:

    @pytest.fixture
    def opened(self, monkeypatch):
        handles = []
        original_open = Path.open

        def tracking_open(self, *args, **kwargs):
            handle = original_open(self, *args, **kwargs)
            handles.append(handle)
            return handle

        monkeypatch.setattr(Path, "open", tracking_open)
        return handles

    @pytest.mark.asyncio
    async def test_closed_after_early_match(self, report_path, opened):
        assert await extract_file_tag(report_path, "UtilsExtra") is not None
        assert len(opened) == 1
        assert opened[0].closed

    @pytest.mark.asyncio
    async def test_closed_after_full_scan(self, report_path, opened):
        assert await extract_file_tag(report_path, "NoSuchFile") is None
        assert opened[0].closed

    @pytest.mark.asyncio
    async def test_closed_when_consumer_raises(self, report_path, opened):
        with pytest.raises(RuntimeError):
            async with open_report_lines(report_path) as lines:
                async for _ in lines:
                    raise RuntimeError("boom")
        assert opened[0].closed
