from rubrduck.messages import (
    ChatRequest,
    ChatResponse,
    FunctionCall,
    Message,
    StreamChunk,
    StreamDelta,
    StreamEvent,
    StreamEventType,
    ToolCall,
    ToolDefinition,
    ToolError,
    Usage,
)


def test_tool_definition_to_dict_layout():
    params = {"type": "object", "properties": {"path": {"type": "string"}}}
    definition = ToolDefinition(name="reader", description="reads things", parameters=params)
    assert definition.to_dict() == {
        "type": "function",
        "function": {
            "name": "reader",
            "description": "reads things",
            "parameters": params,
        },
    }


def test_tool_definition_to_dict_is_a_copy():
    params = {"properties": {"path": {"type": "string"}}}
    definition = ToolDefinition(name="reader", description="d", parameters=params)
    payload = definition.to_dict()
    payload["function"]["parameters"]["properties"]["extra"] = {}
    assert "extra" not in definition.parameters["properties"]


def test_tool_call_defaults_are_independent():
    first = ToolCall()
    second = ToolCall()
    first.function.arguments += '{"a":'
    assert second.function.arguments == ""
    assert first.function == FunctionCall(name="", arguments='{"a":')


def test_message_tool_calls_not_shared():
    first = Message(role="assistant")
    second = Message(role="assistant")
    first.tool_calls.append(ToolCall(id="call_1"))
    assert second.tool_calls == []
    assert first.tool_calls[0].id == "call_1"


def test_chat_request_defaults():
    request = ChatRequest(model="gpt-4")
    assert request.messages == []
    assert request.tools == []
    assert request.stream is False


def test_chat_response_holds_choices_and_usage():
    response = ChatResponse(
        choices=[Message(role="assistant", content="final")],
        usage=Usage(total_tokens=1),
    )
    assert response.choices[0].content == "final"
    assert response.usage.total_tokens == 1


def test_stream_chunk_carries_deltas():
    chunk = StreamChunk(choices=[StreamDelta(content="Hello ")])
    assert chunk.choices[0].content == "Hello "
    assert chunk.choices[0].tool_calls == []


def test_stream_event_defaults():
    event = StreamEvent(type=StreamEventType.DONE)
    assert event.token == ""
    assert event.error is None
    assert event.usage == Usage()
    assert event.type is StreamEventType.DONE


def test_stream_event_types_in_emission_order():
    events = [StreamEvent(type=member) for member in StreamEventType]
    ordered = sorted(events, key=lambda event: event.type.value)
    names = [event.type.name for event in ordered]
    assert names == [
        "TOKEN_CHUNK",
        "TOOL_REQUEST",
        "TOOL_BEGIN",
        "TOOL_RESULT",
        "TOOL_END",
        "DONE",
    ]


def test_tool_error_message():
    error = ToolError("boom")
    assert str(error) == "boom"