"""
Report message
Derives the overall infection status of a sample from its metric results.
Pure functions, no database access.
"""

from typing import Iterable, List, Optional, Tuple

from pathlab.models.sample import NEGATIVE_SENTINEL
from pathlab.schemas.sample import PositiveResult, ReportMessage

INFECTED = "NHIỄM"
CLEAN = "SẠCH"

# metric code -> (level, label); higher level = more severe
SEVERITY_MAP = {
    "WSSV": (3, "nặng"),
    "EHP": (3, "nặng"),
    "EMS": (3, "nặng"),
    "TPD": (2, "TB"),
    "KHUAN": (2, "TB"),
    "MBV": (2, "TB"),
    "DIV1": (2, "TB"),
    "DANG_KHAC": (1, "nhẹ"),
    "VI_KHUAN_VI_NAM": (1, "nhẹ"),
    "TAM_SOAT": (1, "nhẹ"),
    "CL_GAN": (1, "nhẹ"),
}
DEFAULT_SEVERITY = (1, "nhẹ")


def severity_of(metric_code: str) -> Tuple[int, str]:
    return SEVERITY_MAP.get(metric_code, DEFAULT_SEVERITY)


def effective_value(value_num: Optional[float], value_text: Optional[str]) -> float:
    """Numeric value used for classification; the "-" sentinel counts as 0"""
    if value_text == NEGATIVE_SENTINEL:
        return 0
    return value_num or 0


def _format_value(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def build_report(sample_id: int, sample_code: str, customer: str, results: Iterable) -> ReportMessage:
    """Build the report for a sample

    `results` are objects with metric_code, metric_name, value_num and
    value_text attributes (ORM rows or schemas).
    """
    positives: List[PositiveResult] = []
    for result in results:
        value = effective_value(result.value_num, result.value_text)
        if value > 0:
            level, label = severity_of(result.metric_code)
            positives.append(PositiveResult(
                metric_code=result.metric_code,
                metric_name=result.metric_name,
                value=value,
                severity=level,
                severity_label=label))

    kq_chung = INFECTED if positives else CLEAN

    # sorted() is stable: equal severities keep their entry order
    positives = sorted(positives, key=lambda p: p.severity, reverse=True)

    lines = [
        f"Mẫu {sample_code} - Khách hàng: {customer}",
        f"Kết quả tổng hợp: {kq_chung}",
        "",
    ]
    if positives:
        lines.append("Các chỉ số dương tính:")
        for p in positives:
            lines.append(
                f"- {p.metric_name} ({p.metric_code}): {_format_value(p.value)} (mức độ: {p.severity_label})"
            )
        message = "\n".join(lines) + "\n"
    else:
        lines.append("Tất cả các chỉ số đều âm tính.")
        message = "\n".join(lines)

    return ReportMessage(
        sample_id=sample_id,
        sample_code=sample_code,
        customer=customer,
        kq_chung=kq_chung,
        positive_count=len(positives),
        positive_results=positives,
        message=message)
