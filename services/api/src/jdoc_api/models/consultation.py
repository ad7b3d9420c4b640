"""病历记录。"""

import json
from dataclasses import dataclass, field
from typing import Any

CONSULTATION_COLUMNS = (
    "patient_name",
    "dob",
    "visit_date",
    "complaints",
    "anamnesis",
    "diagnosis",
    "treatment",
    "recommendations",
    "doctor_name",
    "doctor_specialty",
    "saved_at",
    "procedures",
)


def _procedures_from_cell(value: str) -> dict[str, int]:
    if not value:
        return {}
    try:
        parsed = json.loads(value)
    except ValueError:
        return {}
    if not isinstance(parsed, dict):
        return {}
    result: dict[str, int] = {}
    for name, count in parsed.items():
        if isinstance(count, bool):
            continue
        if isinstance(count, (int, float)):
            result[str(name)] = int(count)
    return result


@dataclass
class ConsultationRecord:
    """一次接诊的结构化病历。"""

    patient_name: str
    dob: str = ""
    visit_date: str = ""
    complaints: str = ""
    anamnesis: str = ""
    diagnosis: str = ""
    treatment: str = ""
    recommendations: str = ""
    doctor_name: str = ""
    doctor_specialty: str = ""
    saved_at: str = ""
    # 各理疗项目的疗程次数。
    procedures: dict[str, int] = field(default_factory=dict)
    row_number: int | None = None

    def to_row(self) -> list[str]:
        procedures = json.dumps(self.procedures, ensure_ascii=False) if self.procedures else ""
        return [
            self.patient_name,
            self.dob,
            self.visit_date,
            self.complaints,
            self.anamnesis,
            self.diagnosis,
            self.treatment,
            self.recommendations,
            self.doctor_name,
            self.doctor_specialty,
            self.saved_at,
            procedures,
        ]

    @classmethod
    def from_row(cls, row: list[str], *, row_number: int | None = None) -> "ConsultationRecord":
        cells = [str(cell) if cell is not None else "" for cell in row]
        cells.extend([""] * (len(CONSULTATION_COLUMNS) - len(cells)))
        return cls(
            patient_name=cells[0],
            dob=cells[1],
            visit_date=cells[2],
            complaints=cells[3],
            anamnesis=cells[4],
            diagnosis=cells[5],
            treatment=cells[6],
            recommendations=cells[7],
            doctor_name=cells[8],
            doctor_specialty=cells[9],
            saved_at=cells[10],
            procedures=_procedures_from_cell(cells[11]),
            row_number=row_number,
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "row_number": self.row_number,
            "patient_name": self.patient_name,
            "dob": self.dob,
            "visit_date": self.visit_date,
            "complaints": self.complaints,
            "anamnesis": self.anamnesis,
            "diagnosis": self.diagnosis,
            "treatment": self.treatment,
            "recommendations": self.recommendations,
            "doctor_name": self.doctor_name,
            "doctor_specialty": self.doctor_specialty,
            "saved_at": self.saved_at,
            "procedures": self.procedures,
        }
