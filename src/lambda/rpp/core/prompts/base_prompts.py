"""Base prompts for the lesson-plan (RPP) generation calls.

The system prompt carries the AKD persona and quality standards; each stage
prompt receives the request JSON and the JSON schema the answer must follow.
Prompts are written in formal Indonesian because the generated lesson plan is.
"""

from typing import Dict

BASE_PROMPTS: Dict[str, str] = {
    # Shared system prompt for all stages
    "lesson.system": """[PERAN DAN IDENTITAS]
Anda adalah "Asisten Kurikulum Digital (AKD)", ahli pedagogi dan perancang kurikulum profesional.

[STANDAR KUALITAS RPP KBC]
1. Keterkaitan (Alignment): Tujuan, Kegiatan, dan Asesmen harus terhubung erat.
2. Integrasi Tema: Nilai Panca Cinta (KBC) dan Profil Lulusan (DPL) harus terjalin secara naratif.
3. Pembelajaran Mendalam: Alur Memahami, Mengaplikasi, dan Merefleksi.

[INSTRUKSI OUTPUT]
- Kembalikan respons dalam format JSON murni, tanpa teks lain di luar objek JSON.
- Bahasa Indonesia formal (EBI).
- Jika deskripsi teks, gunakan perataan teks yang jelas (justified style dalam konten).""",

    # Stage 1, combined strategy: objectives and framework in one call
    "lesson.initial_components": """Buatlah Tujuan Pembelajaran dan Kerangka Pembelajaran (Praktik, Lingkungan, Digital) secara sekaligus untuk detail berikut:

{request_json}

Berikan setiap tujuan pembelajaran id berurutan ("TP1", "TP2", ...), sertakan rujukan Capaian Pembelajaran (ref_cp) dan alokasi waktu (alokasi_waktu).
Model pembelajaran pada kerangka harus sesuai dengan model_pembelajaran yang dipilih.

Kembalikan JSON yang sesuai dengan skema berikut:
{schema_json}""",

    # Stage 1, sequential strategy: objectives first
    "lesson.objectives": """Buatlah Tujuan Pembelajaran untuk detail berikut:

{request_json}

Berikan setiap tujuan pembelajaran id berurutan ("TP1", "TP2", ...), sertakan rujukan Capaian Pembelajaran (ref_cp) dan alokasi waktu (alokasi_waktu).

Kembalikan JSON yang sesuai dengan skema berikut:
{schema_json}""",

    # Stage 1, sequential strategy: framework built on the objectives
    "lesson.framework": """Buatlah Kerangka Pembelajaran (Praktik Pedagogis, Kemitraan, Lingkungan, Pemanfaatan Digital) untuk detail dan tujuan pembelajaran berikut:

{request_json}

Model pembelajaran pada kerangka harus sesuai dengan model_pembelajaran yang dipilih.

Kembalikan JSON yang sesuai dengan skema berikut:
{schema_json}""",

    "lesson.scenario": """Buat skenario kegiatan (Awal, Inti, Penutup) untuk:

{request_json}

Kegiatan Inti terdiri atas tiga tahap pengalaman belajar: Memahami, Mengaplikasi, dan Merefleksi.
Setiap aktivitas mencantumkan sintaks model pembelajaran yang dipilih.
Setiap pertanyaan pemantik dikaitkan dengan nilai KBC yang dipilih.

Kembalikan JSON yang sesuai dengan skema berikut:
{schema_json}""",

    "lesson.assessment": """Buat paket asesmen lengkap (diagnostik, formatif, sumatif) untuk:

{request_json}

Pada validasi_keselarasan, isi tp_terukur hanya dengan id tujuan pembelajaran yang tercantum di atas.

Kembalikan JSON yang sesuai dengan skema berikut:
{schema_json}""",
}
