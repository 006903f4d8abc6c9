"""Structured results produced by the three generation stages.

Every field is required: a model response missing any of them fails
validation and the stage is treated as failed, never partially applied.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict


class _StageModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


# =============================================================================
# Stage 1: Tujuan Pembelajaran + Kerangka Pembelajaran
# =============================================================================

class LearningObjective(_StageModel):
    id: str
    deskripsi: str


class PraktikPedagogis(_StageModel):
    model_pembelajaran: str
    metode: List[str]


class LingkunganPembelajaran(_StageModel):
    lingkungan_fisik: str
    ruang_virtual: str
    budaya_belajar: str


class PemanfaatanDigital(_StageModel):
    stimulus: str
    pencarian_informasi: str
    pembuatan_produk: str


class LearningFramework(_StageModel):
    praktik_pedagogis: PraktikPedagogis
    kemitraan_pembelajaran: List[str]
    lingkungan_pembelajaran: LingkunganPembelajaran
    pemanfaatan_digital: PemanfaatanDigital


class ObjectivesResult(_StageModel):
    """Objectives plus the two auxiliary fields captured by the same call."""

    tujuan_pembelajaran: List[LearningObjective]
    ref_cp: str
    alokasi_waktu: str

    def objective_ids(self) -> List[str]:
        return [objective.id for objective in self.tujuan_pembelajaran]


class InitialComponents(ObjectivesResult):
    """Stage-1 response of the combined strategy (objectives and framework at once)."""

    kerangka: LearningFramework

    def objectives_only(self) -> ObjectivesResult:
        return ObjectivesResult(
            tujuan_pembelajaran=self.tujuan_pembelajaran,
            ref_cp=self.ref_cp,
            alokasi_waktu=self.alokasi_waktu,
        )


# =============================================================================
# Stage 2: Skenario Kegiatan
# =============================================================================

class PertanyaanPemantik(_StageModel):
    pertanyaan: str
    kaitan_kbc: str


class KegiatanAwal(_StageModel):
    apersepsi: str
    pertanyaan_pemantik: List[PertanyaanPemantik]


class Aktivitas(_StageModel):
    sintaks: str
    deskripsi: str


class PengalamanBelajar(_StageModel):
    penjelasan: str
    aktivitas: List[Aktivitas]


class KegiatanInti(_StageModel):
    memahami: PengalamanBelajar
    mengaplikasi: PengalamanBelajar
    merefleksi: PengalamanBelajar


class KegiatanPenutup(_StageModel):
    refleksi: str
    tindak_lanjut: str


class LearningScenario(_StageModel):
    kegiatan_awal: KegiatanAwal
    kegiatan_inti: KegiatanInti
    kegiatan_penutup: KegiatanPenutup

    def core_activities(self) -> List[Aktivitas]:
        """Activities of Memahami, Mengaplikasi and Merefleksi, in that order."""
        inti = self.kegiatan_inti
        return [*inti.memahami.aktivitas, *inti.mengaplikasi.aktivitas, *inti.merefleksi.aktivitas]


# =============================================================================
# Stage 3: Paket Asesmen
# =============================================================================

class AssessmentQuestion(_StageModel):
    id: str
    pertanyaan: str


class RubricItem(_StageModel):
    kategori: str
    kriteria: str


class FormativeRubricItem(_StageModel):
    aspek: str
    skor_4: str
    skor_3: str
    skor_2: str
    skor_1: str


class SummativeEssayRubricItem(_StageModel):
    aspek: str
    skor_5: str
    skor_3: str
    skor_1: str


class AsesmenDiagnostik(_StageModel):
    instrumen: str
    pertanyaan: List[AssessmentQuestion]
    rubrik: List[RubricItem]


class AsesmenFormatif(_StageModel):
    instrumen: str
    rubrik: List[FormativeRubricItem]


class AsesmenSumatif(_StageModel):
    instrumen: str
    pertanyaan: List[AssessmentQuestion]
    rubrik_esai: List[SummativeEssayRubricItem]


class AlignmentValidation(_StageModel):
    item_asesmen: str
    tp_terukur: List[str]
    kbc_dpl_terukur: List[str]
    catatan_keselarasan: str


class AssessmentPackage(_StageModel):
    asesmen_diagnostik: AsesmenDiagnostik
    asesmen_formatif: AsesmenFormatif
    asesmen_sumatif: AsesmenSumatif
    validasi_keselarasan: List[AlignmentValidation]
