"""
Lesson plan export - renders an accepted lesson plan into a Word document.

Layout: title block, sections A (Spesifikasi) to E (Asesmen Pembelajaran),
then the two-column signature block. Uses python-docx and returns the
document bytes; the caller decides how to deliver them.
"""

import io
import logging
import re
from datetime import date
from typing import Iterable, List, Optional, Sequence

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Mm, Pt

from rpp.core.lesson_models import DPL_OPTIONS, KBC_OPTIONS
from rpp.core.stage_models import PengalamanBelajar
from rpp.core.workflow_models import LessonPlanBundle

logger = logging.getLogger(__name__)

DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

INDONESIAN_MONTHS = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)

CHECKED = "☑"
UNCHECKED = "☐"


def export_filename(topik: str) -> str:
    """``RPP_<topik>.docx`` with whitespace, ``/`` and ``:`` replaced by ``_``."""
    safe_topik = re.sub(r"[\s/:]", "_", topik)
    return f"RPP_{safe_topik}.docx"


def format_signature_date(place: str, on: date) -> str:
    """e.g. ``Jakarta, 5 Maret 2025``."""
    return f"{place}, {on.day} {INDONESIAN_MONTHS[on.month - 1]} {on.year}"


def build_lesson_plan_document(bundle: LessonPlanBundle, today: Optional[date] = None) -> bytes:
    """
    Render the lesson plan as .docx bytes.

    Args:
        bundle: Lesson input plus all four stage results
        today: Date printed in the signature block (defaults to today)
    """
    today = today or date.today()
    lesson = bundle.lesson_input

    doc = Document()
    _setup_page(doc)
    doc.core_properties.author = "Asisten Kurikulum Digital (AKD)"
    doc.core_properties.title = f"RPP - {lesson.topik}"

    for line in ("RENCANA PELAKSANAAN PEMBELAJARAN (RPP)", "(MENDALAM BERBASIS CINTA)"):
        title = doc.add_heading(line, level=0)
        title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    doc.add_paragraph()

    _add_specification(doc, bundle)
    _add_identification(doc, bundle)
    _add_learning_design(doc, bundle)
    _add_learning_experience(doc, bundle)
    _add_assessment(doc, bundle)
    _add_signature_block(doc, bundle, today)

    buffer = io.BytesIO()
    doc.save(buffer)
    data = buffer.getvalue()
    logger.info(f"Built lesson plan document for '{lesson.topik}' ({len(data)} bytes)")
    return data


def _setup_page(doc) -> None:
    style = doc.styles['Normal']
    style.font.name = 'Calibri'
    style.font.size = Pt(11)

    section = doc.sections[0]
    section.page_width = Mm(210)
    section.page_height = Mm(297)
    for side in ('top_margin', 'bottom_margin', 'left_margin', 'right_margin'):
        setattr(section, side, Inches(1))


# =============================================================================
# Sections
# =============================================================================

def _add_specification(doc, bundle: LessonPlanBundle) -> None:
    lesson = bundle.lesson_input
    doc.add_heading("A. Spesifikasi", level=1)
    rows = [
        ("1. Madrasah", lesson.madrasah),
        ("2. Mata Pelajaran", lesson.mapel),
        ("3. Kelas / Semester", lesson.kelas),
        ("4. Topik Pembelajaran", lesson.topik),
        ("5. Alokasi Waktu", bundle.objectives.alokasi_waktu),
    ]
    table = doc.add_table(rows=len(rows), cols=2)
    for row, (label, value) in zip(table.rows, rows):
        row.cells[0].text = label
        row.cells[1].text = f": {value}"
    doc.add_paragraph()


def _add_identification(doc, bundle: LessonPlanBundle) -> None:
    lesson = bundle.lesson_input
    doc.add_heading("B. Identifikasi", level=1)

    doc.add_heading("1. Kesiapan Murid (opsional)", level=2)
    _justified(doc, f"Murid telah mempelajari materi prasyarat yang berkaitan dengan {lesson.topik}.")

    doc.add_heading("2. Dimensi Profil Lulusan", level=2)
    _add_checklist(doc, DPL_OPTIONS, lesson.list_dpl_terpilih)

    doc.add_heading("3. Topik Panca Cinta", level=2)
    _add_checklist(doc, KBC_OPTIONS, lesson.list_kbc_terpilih)

    doc.add_heading("4. Materi Integrasi KBC", level=2)
    _justified(
        doc,
        f"Pembelajaran ini mengintegrasikan {' dan '.join(lesson.list_kbc_terpilih) or '-'} "
        f"untuk menumbuhkan {' dan '.join(lesson.list_dpl_terpilih) or '-'}.",
    )
    _justified(doc, f"Rujukan Capaian Pembelajaran: {bundle.objectives.ref_cp}")
    doc.add_paragraph()


def _add_learning_design(doc, bundle: LessonPlanBundle) -> None:
    framework = bundle.framework
    doc.add_heading("C. Desain Pembelajaran", level=1)

    doc.add_heading("1. Tujuan Pembelajaran", level=2)
    _add_numbered(doc, [objective.deskripsi for objective in bundle.objectives.tujuan_pembelajaran])

    doc.add_heading("2. Kerangka Pembelajaran", level=2)
    doc.add_heading("a. Praktik Pedagogis", level=3)
    _labelled(doc, "Model Pembelajaran", framework.praktik_pedagogis.model_pembelajaran)
    _labelled(doc, "Metode", ", ".join(framework.praktik_pedagogis.metode))

    doc.add_heading("b. Kemitraan Pembelajaran (Opsional)", level=3)
    for partner in framework.kemitraan_pembelajaran:
        doc.add_paragraph(partner, style='List Bullet')

    environment = framework.lingkungan_pembelajaran
    doc.add_heading("c. Lingkungan Pembelajaran", level=3)
    _labelled(doc, "Lingkungan Fisik", environment.lingkungan_fisik, justify=True)
    _labelled(doc, "Ruang Virtual", environment.ruang_virtual, justify=True)
    _labelled(doc, "Budaya Belajar", environment.budaya_belajar, justify=True)

    digital = framework.pemanfaatan_digital
    doc.add_heading("d. Pemanfaatan Digital", level=3)
    _labelled(doc, "Video/Animasi", digital.stimulus, justify=True)
    _labelled(doc, "Pencarian Informasi", digital.pencarian_informasi, justify=True)
    _labelled(doc, "Pembuatan Produk", digital.pembuatan_produk, justify=True)
    doc.add_paragraph()


def _add_learning_experience(doc, bundle: LessonPlanBundle) -> None:
    scenario = bundle.scenario
    doc.add_heading("D. Pengalaman Belajar", level=1)
    doc.add_paragraph(f"(menggunakan model {bundle.lesson_input.model_pembelajaran})")

    doc.add_heading("1. Kegiatan Awal", level=2)
    _labelled(doc, "Apersepsi", scenario.kegiatan_awal.apersepsi, justify=True)
    _bold_line(doc, "Pertanyaan Pemantik:")
    for question in scenario.kegiatan_awal.pertanyaan_pemantik:
        doc.add_paragraph(f"{question.pertanyaan} ({question.kaitan_kbc})", style='List Bullet')

    doc.add_heading("2. Kegiatan Inti", level=2)
    inti = scenario.kegiatan_inti
    _add_phase(doc, "Tahap 1: Memahami", inti.memahami)
    _add_phase(doc, "Tahap 2: Mengaplikasi", inti.mengaplikasi)
    _add_phase(doc, "Tahap 3: Merefleksi", inti.merefleksi)

    doc.add_heading("3. Kegiatan Penutup", level=2)
    _labelled(doc, "Refleksi", scenario.kegiatan_penutup.refleksi, justify=True)
    _labelled(doc, "Tindak Lanjut", scenario.kegiatan_penutup.tindak_lanjut, justify=True)
    doc.add_paragraph()


def _add_phase(doc, title: str, phase: PengalamanBelajar) -> None:
    doc.add_heading(title, level=3)
    _justified(doc, phase.penjelasan)
    for activity in phase.aktivitas:
        _labelled(doc, activity.sintaks, activity.deskripsi, justify=True)


def _add_assessment(doc, bundle: LessonPlanBundle) -> None:
    assessment = bundle.assessment
    doc.add_heading("E. Asesmen Pembelajaran", level=1)

    diagnostic = assessment.asesmen_diagnostik
    doc.add_heading("1. Asesmen Awal (Diagnostik)", level=2)
    _labelled(doc, "Instrumen", diagnostic.instrumen)
    _bold_line(doc, "Pertanyaan:")
    _add_numbered(doc, [q.pertanyaan for q in diagnostic.pertanyaan])
    _bold_line(doc, "Rubrik:")
    _add_grid(doc, ("Kategori", "Kriteria"), [(r.kategori, r.kriteria) for r in diagnostic.rubrik])

    formative = assessment.asesmen_formatif
    doc.add_heading("2. Asesmen Proses (Formatif)", level=2)
    _labelled(doc, "Instrumen", formative.instrumen)
    _add_grid(
        doc,
        ("Aspek", "Skor 4 (Sangat Baik)", "Skor 3 (Baik)", "Skor 2 (Cukup)", "Skor 1 (Kurang)"),
        [(r.aspek, r.skor_4, r.skor_3, r.skor_2, r.skor_1) for r in formative.rubrik],
    )

    summative = assessment.asesmen_sumatif
    doc.add_heading("3. Asesmen Akhir (Sumatif)", level=2)
    _labelled(doc, "Instrumen", summative.instrumen)
    _bold_line(doc, "Pertanyaan:")
    _add_numbered(doc, [q.pertanyaan for q in summative.pertanyaan])
    _add_grid(
        doc,
        ("Aspek", "Skor 5 (Sangat Baik)", "Skor 3 (Cukup)", "Skor 1 (Kurang)"),
        [(r.aspek, r.skor_5, r.skor_3, r.skor_1) for r in summative.rubrik_esai],
    )

    doc.add_heading("4. Validasi Keselarasan", level=2)
    _add_grid(
        doc,
        ("Item Asesmen", "TP Terukur", "KBC/DPL Terukur", "Catatan"),
        [
            (row.item_asesmen, ", ".join(row.tp_terukur), ", ".join(row.kbc_dpl_terukur), row.catatan_keselarasan)
            for row in assessment.validasi_keselarasan
        ],
    )
    doc.add_paragraph()
    doc.add_paragraph()


def _add_signature_block(doc, bundle: LessonPlanBundle, today: date) -> None:
    lesson = bundle.lesson_input
    table = doc.add_table(rows=4, cols=2)
    lines = [
        ("Mengetahui,", format_signature_date(lesson.tempat, today)),
        ("Kepala Madrasah", "Guru Mata Pelajaran"),
        ("\n\n", "\n\n"),
    ]
    for row, (left, right) in zip(table.rows, lines):
        for cell, text in zip(row.cells, (left, right)):
            cell.text = text
            cell.paragraphs[0].alignment = WD_ALIGN_PARAGRAPH.CENTER

    for cell, name in zip(table.rows[3].cells, (lesson.nama_kepala_madrasah, lesson.nama_guru)):
        paragraph = cell.paragraphs[0]
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        paragraph.add_run(name).underline = True


# =============================================================================
# Paragraph helpers
# =============================================================================

def _justified(doc, text: str):
    paragraph = doc.add_paragraph(text)
    paragraph.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
    return paragraph


def _labelled(doc, label: str, value: str, justify: bool = False):
    paragraph = doc.add_paragraph()
    paragraph.add_run(f"{label}: ").bold = True
    paragraph.add_run(value)
    if justify:
        paragraph.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
    return paragraph


def _bold_line(doc, text: str):
    paragraph = doc.add_paragraph()
    paragraph.add_run(text).bold = True
    return paragraph


def _add_numbered(doc, items: Iterable[str]) -> None:
    # Explicit numbers so each list restarts at 1
    for index, item in enumerate(items, start=1):
        paragraph = doc.add_paragraph(f"{index}. {item}")
        paragraph.paragraph_format.left_indent = Inches(0.25)


def _add_checklist(doc, options: Sequence[str], selected: List[str]) -> None:
    for option in options:
        paragraph = doc.add_paragraph(f"{CHECKED if option in selected else UNCHECKED} {option}")
        paragraph.paragraph_format.left_indent = Inches(0.3)


def _add_grid(doc, headers: Sequence[str], rows: Sequence[Sequence[str]]):
    table = doc.add_table(rows=1, cols=len(headers))
    table.style = 'Table Grid'
    for cell, header in zip(table.rows[0].cells, headers):
        cell.text = ""
        cell.paragraphs[0].add_run(header).bold = True
    for values in rows:
        cells = table.add_row().cells
        for cell, value in zip(cells, values):
            cell.text = value
    return table
