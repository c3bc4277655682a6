from pathlib import Path

from testgen.models import AnalyzedComponent, ElementRecord, NetworkCall, StatePair
from testgen.services.test_generator import (
    build_sample_row,
    choose_query,
    get_test_path,
    render_test_file,
    write_test_file,
)


def _component(**kwargs) -> AnalyzedComponent:
    return AnalyzedComponent(name="Counter", **kwargs)


def test_blank_analysis_renders_smoke_test():
    source = render_test_file("/src/components/Counter.tsx")

    assert 'import Counter from "../Counter";' in source
    assert 'describe("Counter component", () => {' in source
    assert "render(<Counter />);" in source
    assert "beforeEach(" not in source
    assert "vi.restoreAllMocks();" in source
    assert source.endswith("});\n")


def test_props_become_sample_attributes():
    source = render_test_file("Counter.tsx", _component(props=["title", "count"]))
    assert 'render(<Counter title="Sample Title" count="Sample Count" />);' in source

    generic = render_test_file("Counter.tsx", _component(props=["props"]))
    assert "render(<Counter />);" in generic


def test_choose_query_preference_order():
    assert choose_query(ElementRecord(type="button", text="Add", role_hint="button")) == (
        'screen.getByRole("button", { name: /Add/i })'
    )
    assert choose_query(ElementRecord(type="input", role_hint="textbox", stable_id="x")) == (
        'screen.getByRole("textbox")'
    )
    assert choose_query(ElementRecord(type="img", role_hint="image")) == 'screen.getByRole("img")'
    assert choose_query(ElementRecord(type="div", stable_id="panel", text="Hi")) == (
        'screen.getByTestId("panel")'
    )
    assert choose_query(ElementRecord(type="p", text="Total (USD)")) == r"screen.getByText(/Total \(USD\)/i)"
    assert choose_query(ElementRecord(type="div")) is None


def test_element_tests_skip_dynamic_and_unqueryable_elements():
    elements = [
        ElementRecord(type="div"),
        ElementRecord(type="li", stable_id="todo", text="Milk"),
        ElementRecord(type="h1", text="Todos"),
    ]
    source = render_test_file("Counter.tsx", _component(elements=elements))

    assert 'test("renders expected element #1"' in source
    assert 'test("renders expected element #2"' not in source
    assert "screen.getByText(/Todos/i)" in source
    assert "toHaveTextContent(/Todos/i)" in source
    assert 'getByTestId("todo")' not in source


def test_element_tests_are_capped():
    elements = [ElementRecord(type="p", text=f"Line {i}") for i in range(8)]
    source = render_test_file("Counter.tsx", _component(elements=elements))

    assert "renders expected element #6" in source
    assert "renders expected element #7" not in source


def test_interaction_tests_for_input_and_button():
    elements = [
        ElementRecord(type="input", stable_id="user-input", role_hint="textbox"),
        ElementRecord(type="Button", stable_id="add-button", text="Add"),
    ]
    source = render_test_file("Counter.tsx", _component(elements=elements))

    assert 'test("updates input value on typing"' in source
    assert 'test("adds a new item on button click"' in source
    assert 'const input = screen.getByRole("textbox");' in source
    # Not a DOM button, so it is found by its test id
    assert 'const button = screen.getByTestId("add-button");' in source


def test_fetch_on_mount_test_uses_sample_rows():
    elements = [ElementRecord(type="li", properties={"key": "expr:todo"})]
    analyzed = _component(
        elements=elements,
        has_effects=True,
        uses_fetch=True,
        apis=[NetworkCall(kind="fetch", url="/api/todos")],
    )
    source = render_test_file("Counter.tsx", analyzed)

    assert 'vi.spyOn(globalThis as any, "fetch")' in source
    assert 'test("loads data from fetch on mount"' in source
    assert 'json: async () => [{"todo":"Sample Todo"}],' in source


def test_axios_on_mount_test_mocks_recorded_method():
    analyzed = _component(
        has_effects=True,
        uses_axios=True,
        apis=[NetworkCall(kind="axios", method="post", url="unknown")],
        states=[StatePair(value_name="count", setter_name="setCount")],
    )
    source = render_test_file("Counter.tsx", analyzed)

    assert 'vi.mock("axios", () => ({' in source
    assert 'post: vi.fn().mockResolvedValue({"data":[{"id":1,"username":"Eve"}]}),' in source
    assert "expect(axios.post).toHaveBeenCalled();" in source


def test_build_sample_row():
    elements = [
        ElementRecord(type="span", properties={"title": "expr:name", "id": "static"}),
        ElementRecord(type="span", properties={"hidden": True}),
    ]
    assert build_sample_row(elements) == {"name": "Sample Name"}
    assert build_sample_row([]) == {"id": 1, "username": "Eve"}


def test_write_test_file_respects_existing_files(tmp_path):
    component = tmp_path / "Counter.tsx"
    component.write_text("export default function Counter() { return null; }", encoding="utf-8")

    expected = tmp_path / "__tests__" / "Counter.test.tsx"
    assert get_test_path(str(component)) == expected

    written = write_test_file(str(component), _component())
    assert written == expected
    assert "Counter component" in expected.read_text(encoding="utf-8")

    expected.write_text("// hand edited", encoding="utf-8")
    assert write_test_file(str(component), _component()) is None
    assert expected.read_text(encoding="utf-8") == "// hand edited"

    assert write_test_file(str(component), _component(), force=True) == Path(expected)
    assert "Counter component" in expected.read_text(encoding="utf-8")
