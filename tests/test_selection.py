from ingestion import SelectionCascade
from models.template import FileFormat, RecordType


def test_cascade_resolves_template_after_three_steps(catalog):
    selection = SelectionCascade(catalog)
    assert selection.active_template() is None

    selection.select_institution("abc")
    selection.select_record_type("savings")
    # two formats offered, so nothing is picked automatically
    assert selection.state.file_format is None
    assert selection.available_formats() == [FileFormat.CSV, FileFormat.XLSX]
    assert selection.active_template() is None

    selection.select_format("csv")
    assert selection.is_complete
    assert selection.active_template().id == 1


def test_changing_institution_clears_later_steps(catalog):
    selection = SelectionCascade(catalog)
    selection.select_institution("abc")
    selection.select_record_type(RecordType.SAVINGS)
    selection.select_format(FileFormat.XLSX)

    selection.select_institution("hdfc")

    assert selection.state.record_type is None
    assert selection.state.file_format is None
    assert selection.active_template() is None
    assert selection.available_record_types() == [RecordType.CURRENT]


def test_changing_record_type_clears_format(catalog):
    selection = SelectionCascade(catalog)
    selection.select_institution("abc")
    selection.select_record_type("savings")
    selection.select_format("xlsx")

    selection.select_record_type("credit_card")

    # the only credit card format is picked automatically
    assert selection.state.file_format == FileFormat.PDF
    assert selection.active_template().id == 3


def test_options_not_offered_are_ignored(catalog):
    selection = SelectionCascade(catalog)
    selection.select_record_type("savings")
    assert selection.state.record_type is None

    selection.select_institution("nowhere")
    assert selection.state.institution_code is None

    selection.select_institution("hdfc")
    selection.select_record_type("savings")
    assert selection.state.record_type is None

    selection.select_record_type("current")
    selection.select_format("csv")
    assert selection.state.file_format == FileFormat.XLS


def test_subscribers_receive_state_snapshots(catalog):
    selection = SelectionCascade(catalog)
    seen = []
    unsubscribe = selection.subscribe(seen.append)

    selection.select_institution("abc")
    selection.select_record_type("savings")
    selection.select_institution("nowhere")
    unsubscribe()
    selection.select_format("csv")

    assert [s.institution_code for s in seen] == ["abc", "abc"]
    assert seen[-1].record_type == RecordType.SAVINGS
    assert seen[-1] is not selection.state


def test_reset_clears_everything(catalog):
    selection = SelectionCascade(catalog)
    selection.select_institution("hdfc")
    selection.select_record_type("current")
    selection.reset()
    assert selection.state.institution_code is None
    assert selection.available_record_types() == []
    assert selection.available_formats() == []
