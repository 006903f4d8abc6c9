"""
Pytest configuration and fixtures
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src" / "lambda"))

from rpp.core.lesson_models import LessonInput
from rpp.core.stage_models import AssessmentPackage, InitialComponents, LearningScenario


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, local, no AWS)")
    config.addinivalue_line("markers", "integration: Integration tests (moderate speed, requires AWS)")
    config.addinivalue_line("markers", "e2e: End-to-end tests (slow, full AWS stack)")


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """Setup test environment variables."""
    monkeypatch.setenv('AWS_REGION', 'us-east-1')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')
    monkeypatch.setenv('LLM_MODEL_ID', 'test-model')
    monkeypatch.setenv('DYNAMODB_LESSON_DRAFTS_TABLE_NAME', 'test-lesson-drafts')
    monkeypatch.setenv('DYNAMODB_LESSON_WORKFLOW_TABLE_NAME', 'test-lesson-workflow')
    monkeypatch.delenv('LESSON_DRAFT_PATH', raising=False)


@pytest.fixture
def zakat_lesson():
    """Fikih lesson on Zakat used across the workflow tests."""
    return LessonInput(
        topik="Zakat",
        mapel="Fikih",
        kelas="VIII / Genap",
        madrasah="MTs Negeri 2 Bandung",
        nama_guru="Fatimah, S.Pd.I.",
        nama_kepala_madrasah="H. Abdullah, M.Ag.",
        tempat="Bandung",
        list_kbc_terpilih=["Cinta Allah dan Rasul-Nya", "Cinta Diri dan Sesama Manusia"],
        list_dpl_terpilih=["Keimanan dan Ketakwaan kepada Tuhan YME", "Kewargaan"],
        model_pembelajaran="Problem-Based Learning",
    )


@pytest.fixture
def initial_components():
    return InitialComponents.model_validate({
        "tujuan_pembelajaran": [
            {"id": "tp_1", "deskripsi": "Menjelaskan pengertian dan hukum zakat."},
            {"id": "tp_2", "deskripsi": "Membedakan zakat fitrah dan zakat mal."},
            {"id": "tp_3", "deskripsi": "Menghitung zakat mal sesuai nisab dan haul."},
        ],
        "ref_cp": "Peserta didik memahami ketentuan zakat sebagai wujud kepedulian sosial.",
        "alokasi_waktu": "2 x 40 Menit",
        "kerangka": {
            "praktik_pedagogis": {
                "model_pembelajaran": "Problem-Based Learning",
                "metode": ["Diskusi", "Studi kasus"],
            },
            "kemitraan_pembelajaran": ["Amil zakat di masjid sekitar"],
            "lingkungan_pembelajaran": {
                "lingkungan_fisik": "Kelas dengan tata letak kelompok.",
                "ruang_virtual": "Grup kelas daring.",
                "budaya_belajar": "Saling menghargai pendapat.",
            },
            "pemanfaatan_digital": {
                "stimulus": "Video penyaluran zakat.",
                "pencarian_informasi": "Situs BAZNAS.",
                "pembuatan_produk": "Infografis perhitungan zakat.",
            },
        },
    })


@pytest.fixture
def scenario():
    return LearningScenario.model_validate({
        "kegiatan_awal": {
            "apersepsi": "Guru menanyakan pengalaman murid membayar zakat fitrah.",
            "pertanyaan_pemantik": [
                {"pertanyaan": "Mengapa zakat disebut hak orang lain?", "kaitan_kbc": "Cinta Diri dan Sesama Manusia"},
            ],
        },
        "kegiatan_inti": {
            "memahami": {
                "penjelasan": "Murid mengkaji dalil zakat.",
                "aktivitas": [
                    {"sintaks": "Orientasi masalah", "deskripsi": "Membaca kasus warga kurang mampu."},
                    {"sintaks": "Organisasi belajar", "deskripsi": "Membagi tugas kelompok."},
                ],
            },
            "mengaplikasi": {
                "penjelasan": "Murid menghitung zakat mal.",
                "aktivitas": [
                    {"sintaks": "Penyelidikan", "deskripsi": "Menghitung zakat dari data harta."},
                ],
            },
            "merefleksi": {
                "penjelasan": "Murid merenungkan manfaat zakat.",
                "aktivitas": [
                    {"sintaks": "Evaluasi", "deskripsi": "Menulis refleksi singkat."},
                ],
            },
        },
        "kegiatan_penutup": {
            "refleksi": "Murid menyampaikan kesan pembelajaran.",
            "tindak_lanjut": "Membuat rencana berbagi di rumah.",
        },
    })


@pytest.fixture
def assessment():
    return AssessmentPackage.model_validate({
        "asesmen_diagnostik": {
            "instrumen": "Pertanyaan lisan",
            "pertanyaan": [{"id": "d1", "pertanyaan": "Apa yang kamu ketahui tentang zakat?"}],
            "rubrik": [{"kategori": "Paham", "kriteria": "Menyebut pengertian zakat dengan tepat."}],
        },
        "asesmen_formatif": {
            "instrumen": "Lembar observasi diskusi",
            "rubrik": [{
                "aspek": "Kerja sama",
                "skor_4": "Selalu aktif",
                "skor_3": "Sering aktif",
                "skor_2": "Kadang aktif",
                "skor_1": "Pasif",
            }],
        },
        "asesmen_sumatif": {
            "instrumen": "Tes esai",
            "pertanyaan": [{"id": "s1", "pertanyaan": "Hitunglah zakat mal dari kasus berikut."}],
            "rubrik_esai": [{
                "aspek": "Ketepatan perhitungan",
                "skor_5": "Tepat seluruhnya",
                "skor_3": "Sebagian tepat",
                "skor_1": "Tidak tepat",
            }],
        },
        "validasi_keselarasan": [
            {
                "item_asesmen": "Tes esai nomor 1",
                "tp_terukur": ["tp_3"],
                "kbc_dpl_terukur": ["Kewargaan"],
                "catatan_keselarasan": "Mengukur kemampuan menghitung zakat.",
            },
            {
                "item_asesmen": "Observasi diskusi",
                "tp_terukur": ["tp_1", "tp_2"],
                "kbc_dpl_terukur": ["Cinta Diri dan Sesama Manusia"],
                "catatan_keselarasan": "Mengukur pemahaman konsep.",
            },
        ],
    })
