"""Report message building"""
from types import SimpleNamespace

from pathlab.services.report import build_report, effective_value, severity_of


def _result(code, value_num=None, value_text=None, name=None):
    return SimpleNamespace(metric_code=code, metric_name=name or code, value_num=value_num, value_text=value_text)


def test_single_wssv_positive_is_infected():
    report = build_report(1, "XN20240115-001", "Trại A", [_result("WSSV", 5, name="Đốm trắng")])

    assert report.kq_chung == "NHIỄM"
    assert report.positive_count == 1
    assert report.positive_results[0].severity == 3
    assert report.positive_results[0].severity_label == "nặng"
    assert report.message == (
        "Mẫu XN20240115-001 - Khách hàng: Trại A\n"
        "Kết quả tổng hợp: NHIỄM\n"
        "\n"
        "Các chỉ số dương tính:\n"
        "- Đốm trắng (WSSV): 5 (mức độ: nặng)\n"
    )


def test_all_negative_sentinels_are_clean():
    results = [_result("WSSV", value_text="-"), _result("EHP", 7, "-"), _result("TPD", value_text="-")]

    report = build_report(2, "XN20240115-002", "Trại B", results)

    assert report.kq_chung == "SẠCH"
    assert report.positive_count == 0
    assert report.positive_results == []
    assert report.message == (
        "Mẫu XN20240115-002 - Khách hàng: Trại B\n"
        "Kết quả tổng hợp: SẠCH\n"
        "\n"
        "Tất cả các chỉ số đều âm tính."
    )


def test_no_results_is_clean():
    assert build_report(3, "XN1", "C", []).kq_chung == "SẠCH"


def test_positives_sorted_by_severity_keeping_entry_order():
    results = [
        _result("CL_GAN", 1),
        _result("KHUAN", 2),
        _result("EMS", 0),
        _result("MBV", 3),
        _result("EHP", 1.5),
    ]

    report = build_report(4, "XN2", "D", results)

    assert [p.metric_code for p in report.positive_results] == ["EHP", "KHUAN", "MBV", "CL_GAN"]
    assert "- EHP (EHP): 1.5 (mức độ: nặng)" in report.message


def test_unknown_metric_code_is_mild():
    assert severity_of("NEW_MARKER") == (1, "nhẹ")
    assert severity_of("DIV1") == (2, "TB")


def test_effective_value():
    assert effective_value(None, None) == 0
    assert effective_value(4.0, None) == 4.0
    assert effective_value(4.0, "-") == 0
    assert effective_value(None, "dương tính") == 0
