"""
Unit tests for the .docx lesson plan export.

Documents are built in memory and read back with python-docx.
"""

import io
import pytest
import sys
from datetime import date
from pathlib import Path

from docx import Document

# Add Lambda source to path
lambda_path = Path(__file__).parent.parent.parent / "src" / "lambda"
sys.path.insert(0, str(lambda_path))

from rpp.core.workflow_models import LessonPlanBundle
from rpp.document_export import build_lesson_plan_document, export_filename, format_signature_date


@pytest.fixture
def bundle(zakat_lesson, initial_components, scenario, assessment):
    return LessonPlanBundle(
        lesson_input=zakat_lesson,
        objectives=initial_components.objectives_only(),
        framework=initial_components.kerangka,
        scenario=scenario,
        assessment=assessment,
    )


@pytest.fixture
def document(bundle):
    return Document(io.BytesIO(build_lesson_plan_document(bundle, today=date(2025, 3, 5))))


def _all_text(doc):
    texts = [p.text for p in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            texts.extend(cell.text for cell in row.cells)
    return "\n".join(texts)


class TestFilenameAndDate:
    """Test export naming helpers."""

    @pytest.mark.parametrize("topik,expected", [
        ("Zakat", "RPP_Zakat.docx"),
        ("Kiamat Sudah Dekat: Siapkan Amal", "RPP_Kiamat_Sudah_Dekat__Siapkan_Amal.docx"),
        ("Infak/Sedekah", "RPP_Infak_Sedekah.docx"),
    ])
    def test_export_filename(self, topik, expected):
        assert export_filename(topik) == expected

    def test_signature_date_uses_indonesian_month(self):
        assert format_signature_date("Jakarta", date(2025, 3, 5)) == "Jakarta, 5 Maret 2025"
        assert format_signature_date("Bandung", date(2024, 12, 31)) == "Bandung, 31 Desember 2024"


class TestLessonPlanDocument:
    """Test document structure and content."""

    def test_section_headings_in_order(self, document):
        headings = [p.text for p in document.paragraphs if p.style.name == "Heading 1"]
        assert headings == [
            "A. Spesifikasi",
            "B. Identifikasi",
            "C. Desain Pembelajaran",
            "D. Pengalaman Belajar",
            "E. Asesmen Pembelajaran",
        ]

    def test_title_block(self, document):
        assert document.paragraphs[0].text == "RENCANA PELAKSANAAN PEMBELAJARAN (RPP)"
        assert document.core_properties.title == "RPP - Zakat"

    def test_specification_table(self, document):
        spesifikasi = document.tables[0]
        assert spesifikasi.rows[3].cells[1].text == ": Zakat"
        assert spesifikasi.rows[4].cells[1].text == ": 2 x 40 Menit"

    def test_value_checklists(self, document):
        text = _all_text(document)
        assert "☑ Kewargaan" in text
        assert "☐ Penalaran Kritis" in text
        assert "☑ Cinta Allah dan Rasul-Nya" in text

    def test_stage_content_present(self, document):
        text = _all_text(document)
        assert "1. Menjelaskan pengertian dan hukum zakat." in text
        assert "Amil zakat di masjid sekitar" in text
        assert "Tahap 2: Mengaplikasi" in text
        assert "Membuat rencana berbagi di rumah." in text
        assert "Hitunglah zakat mal dari kasus berikut." in text

    def test_alignment_grid(self, document):
        grid = next(t for t in document.tables if t.rows[0].cells[0].text == "Item Asesmen")
        assert grid.style.name == "Table Grid"
        assert [c.text for c in grid.rows[1].cells] == [
            "Tes esai nomor 1", "tp_3", "Kewargaan", "Mengukur kemampuan menghitung zakat.",
        ]
        assert grid.rows[2].cells[1].text == "tp_1, tp_2"

    def test_signature_block(self, document):
        signature = document.tables[-1]
        assert signature.rows[0].cells[1].text == "Bandung, 5 Maret 2025"
        assert signature.rows[3].cells[0].text == "H. Abdullah, M.Ag."
        assert signature.rows[3].cells[1].text == "Fatimah, S.Pd.I."
        assert signature.rows[3].cells[1].paragraphs[0].runs[0].underline
