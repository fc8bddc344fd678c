from shared.dar.models import ConversationRequest, GenerateReportRequest, ShiftData


def test_default_shift_data_has_placeholders():
    data = ShiftData.default().as_dict()
    assert data["client_name"] == "Unknown Client"
    assert data["psw_name"] == "PSW"
    assert data["observations"] == []


def test_shift_data_keeps_unknown_fields():
    data = ShiftData(client_name="Rose", time="9:30 am").as_dict()
    assert data["time"] == "9:30 am"
    assert "psw_name" not in data


def test_report_request_accepts_missing_shift_data():
    request = GenerateReportRequest.model_validate({})
    assert request.shiftData is None
    assert request.conversation == []


def test_conversation_request_defaults():
    request = ConversationRequest.model_validate({"input": "hello"})
    assert request.language == "en"
    assert request.shiftData.as_dict()["care_activities"] == []
