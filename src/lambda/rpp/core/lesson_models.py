from __future__ import annotations

from typing import Any, Dict, List, Literal, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


LearningModel = Literal[
    "Cooperative Learning",
    "Problem-Based Learning",
    "Project-Based Learning",
    "Discovery Learning",
]
TagCategory = Literal["kbc", "dpl"]

# Panca Cinta topics (Kurikulum Berbasis Cinta)
KBC_OPTIONS: Tuple[str, ...] = (
    "Cinta Allah dan Rasul-Nya",
    "Cinta Ilmu",
    "Cinta Lingkungan",
    "Cinta Diri dan Sesama Manusia",
    "Cinta Tanah Air",
)

# Dimensi Profil Lulusan
DPL_OPTIONS: Tuple[str, ...] = (
    "Keimanan dan Ketakwaan kepada Tuhan YME",
    "Kewargaan",
    "Penalaran Kritis",
    "Kreativitas",
    "Kolaborasi",
    "Kemandirian",
    "Kesehatan",
    "Komunikasi",
)

LEARNING_MODEL_SYNTAX: Dict[str, str] = {
    "Cooperative Learning": (
        "Siswa bekerja dalam kelompok kecil untuk mencapai tujuan bersama, menekankan "
        "pembelajaran kolaboratif dan tanggung jawab individu serta kelompok."
    ),
    "Problem-Based Learning": (
        "Pembelajaran dimulai dengan masalah otentik. Siswa mengidentifikasi apa yang "
        "perlu mereka ketahui untuk menyelesaikan masalah tersebut."
    ),
    "Project-Based Learning": (
        "Siswa terlibat dalam investigasi mendalam terhadap topik dunia nyata, yang "
        "berpuncak pada produk atau presentasi publik."
    ),
    "Discovery Learning": (
        "Siswa didorong untuk menemukan prinsip atau konsep sendiri melalui eksplorasi "
        "aktif dan penyelidikan yang dipandu guru."
    ),
}

_TAG_FIELDS = {"kbc": "list_kbc_terpilih", "dpl": "list_dpl_terpilih"}
_REQUIRED_FOR_GENERATION = (("topik", "Topik"), ("mapel", "Mata Pelajaran"), ("kelas", "Kelas / Semester"))


class LessonInput(BaseModel):
    """Lesson form as filled in by the teacher.

    Field aliases keep the persisted/browser JSON layout (``namaGuru``,
    ``namaKepalaMadrasah``); Python code uses the snake_case names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    topik: str = ""
    mapel: str = ""
    kelas: str = ""
    madrasah: str = ""
    nama_guru: str = Field(default="", alias="namaGuru")
    nama_kepala_madrasah: str = Field(default="", alias="namaKepalaMadrasah")
    tempat: str = ""
    list_kbc_terpilih: List[str] = Field(default_factory=list)
    list_dpl_terpilih: List[str] = Field(default_factory=list)
    model_pembelajaran: LearningModel = "Cooperative Learning"
    stimulus_url: str = ""

    @field_validator("list_kbc_terpilih", "list_dpl_terpilih")
    @classmethod
    def _dedupe_tags(cls, value: List[str]) -> List[str]:
        # Tag categories are sets; keep first-selection order
        return list(dict.fromkeys(value))

    def to_draft_payload(self) -> Dict[str, Any]:
        """JSON layout stored in the draft slot."""
        return self.model_dump(mode="json", by_alias=True)

    def missing_required_fields(self) -> List[str]:
        return [label for name, label in _REQUIRED_FOR_GENERATION if not getattr(self, name).strip()]

    def with_changes(self, **changes: Any) -> "LessonInput":
        """Return a validated copy with the given form fields replaced.

        Accepts either attribute names or their JSON aliases.
        """
        data = self.model_dump(by_alias=False)
        for key, value in changes.items():
            data[_field_name(key)] = value
        return LessonInput.model_validate(data)

    def with_toggled_tag(self, category: TagCategory, value: str) -> "LessonInput":
        field = _TAG_FIELDS[category]
        current = list(getattr(self, field))
        if value in current:
            current = [item for item in current if item != value]
        else:
            current.append(value)
        return self.with_changes(**{field: current})


def _field_name(key: str) -> str:
    for name, info in LessonInput.model_fields.items():
        if key == name or key == info.alias:
            return name
    raise KeyError(f"Unknown lesson field: {key}")


def default_lesson_input() -> LessonInput:
    """Sample lesson shown on first visit (and after reset)."""
    return LessonInput(
        topik="Kiamat Sudah Dekat: Siapkan Amal sebagai Bekal",
        mapel="Akidah Akhlak",
        kelas="IX / Gasal",
        madrasah="MTs Negeri 1 Contoh",
        nama_guru="Ahmad, S.Pd.",
        nama_kepala_madrasah="Dr. Siti, M.Pd.",
        tempat="Jakarta",
        list_kbc_terpilih=["Cinta Allah dan Rasul-Nya", "Cinta Diri dan Sesama Manusia"],
        list_dpl_terpilih=["Keimanan dan Ketakwaan kepada Tuhan YME", "Penalaran Kritis"],
        model_pembelajaran="Cooperative Learning",
        stimulus_url="",
    )


def form_options() -> Dict[str, Any]:
    """Choices offered by the lesson form, including each learning model's syntax note."""
    return {
        "kbc": list(KBC_OPTIONS),
        "dpl": list(DPL_OPTIONS),
        "model_pembelajaran": [
            {"nama": name, "sintaks": syntax} for name, syntax in LEARNING_MODEL_SYNTAX.items()
        ],
    }
