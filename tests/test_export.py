"""Tests for CSV export."""

import csv
import io

from metadata_extractor.models.asset import AssetType, ExtractedAsset
from metadata_extractor.utils.export import CSV_HEADER, assets_to_csv


def make_asset(**overrides) -> ExtractedAsset:
    values = dict(
        id="a1",
        asset_id="Table 2",
        asset_type=AssetType.TABLE,
        page_number=4,
        preview="preview",
        alt_text='A table titled "Revenue", by region',
        keywords=["revenue", "regions"],
        taxonomy="Table -> Financial",
    )
    values.update(overrides)
    return ExtractedAsset(**values)


def test_header_only_for_empty_collection() -> None:
    assert assets_to_csv([], "report.pdf") == CSV_HEADER + "\r\n"


def test_row_layout_and_quoting() -> None:
    text = assets_to_csv([make_asset()], "report.pdf")

    row = text.split("\r\n")[1]
    assert row == (
        'report.pdf,Table 2,Table,4,"A table titled ""Revenue"", by region",'
        '"revenue, regions","Table -> Financial"'
    )


def test_filename_falls_back_to_document() -> None:
    text = assets_to_csv([make_asset()])

    assert text.split("\r\n")[1].startswith("document,")


def test_csv_reader_recovers_fields() -> None:
    asset = make_asset(alt_text='Line one, "quoted"', keywords=["a", "b, c"])

    rows = list(csv.reader(io.StringIO(assets_to_csv([asset], "paper.pdf"))))

    assert rows[0] == CSV_HEADER.split(",")
    assert rows[1][4] == 'Line one, "quoted"'
    assert rows[1][5] == "a, b, c"
    assert rows[1][6] == "Table -> Financial"


def test_plain_columns_quoted_when_they_contain_commas() -> None:
    asset = make_asset(asset_id="Figure 1, panel A")

    text = assets_to_csv([asset], "report, final.pdf")
    rows = list(csv.reader(io.StringIO(text)))

    assert text.split("\r\n")[1].startswith('"report, final.pdf","Figure 1, panel A",Table,4,')
    assert len(rows[1]) == 7
    assert rows[1][:4] == ["report, final.pdf", "Figure 1, panel A", "Table", "4"]
