"""Protobuf message classes for the Prometheus remote-storage protocol.

Built at import time from a descriptor so no generated code is needed.
Only the fields this adapter reads or writes are declared; other fields in
inbound payloads are kept as unknown fields and ignored.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_Field = descriptor_pb2.FieldDescriptorProto

_PACKAGE = "prometheus"


def _field(
    name: str,
    number: int,
    field_type: int,
    repeated: bool = False,
    type_name: str | None = None,
) -> _Field:
    field = _Field(
        name=name,
        number=number,
        type=field_type,
        label=_Field.LABEL_REPEATED if repeated else _Field.LABEL_OPTIONAL,
    )
    if type_name is not None:
        field.type_name = f".{_PACKAGE}.{type_name}"
    return field


def _message(
    file_proto: descriptor_pb2.FileDescriptorProto,
    name: str,
    *fields: _Field,
) -> descriptor_pb2.DescriptorProto:
    message = file_proto.message_type.add(name=name)
    message.field.extend(fields)
    return message


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="promdoc/remote.proto", package=_PACKAGE, syntax="proto3"
    )
    _message(
        file_proto,
        "Sample",
        _field("value", 1, _Field.TYPE_DOUBLE),
        _field("timestamp", 2, _Field.TYPE_INT64),
    )
    _message(
        file_proto,
        "Label",
        _field("name", 1, _Field.TYPE_STRING),
        _field("value", 2, _Field.TYPE_STRING),
    )
    _message(
        file_proto,
        "TimeSeries",
        _field("labels", 1, _Field.TYPE_MESSAGE, repeated=True, type_name="Label"),
        _field("samples", 2, _Field.TYPE_MESSAGE, repeated=True, type_name="Sample"),
    )
    _message(
        file_proto,
        "WriteRequest",
        _field(
            "timeseries", 1, _Field.TYPE_MESSAGE, repeated=True, type_name="TimeSeries"
        ),
    )
    matcher = _message(
        file_proto,
        "LabelMatcher",
        _field("type", 1, _Field.TYPE_ENUM, type_name="LabelMatcher.Type"),
        _field("name", 2, _Field.TYPE_STRING),
        _field("value", 3, _Field.TYPE_STRING),
    )
    match_type = matcher.enum_type.add(name="Type")
    for number, name in enumerate(("EQ", "NEQ", "RE", "NRE")):
        match_type.value.add(name=name, number=number)
    _message(
        file_proto,
        "Query",
        _field("start_timestamp_ms", 1, _Field.TYPE_INT64),
        _field("end_timestamp_ms", 2, _Field.TYPE_INT64),
        _field(
            "matchers", 3, _Field.TYPE_MESSAGE, repeated=True, type_name="LabelMatcher"
        ),
    )
    _message(
        file_proto,
        "ReadRequest",
        _field("queries", 1, _Field.TYPE_MESSAGE, repeated=True, type_name="Query"),
    )
    _message(
        file_proto,
        "QueryResult",
        _field(
            "timeseries", 1, _Field.TYPE_MESSAGE, repeated=True, type_name="TimeSeries"
        ),
    )
    _message(
        file_proto,
        "ReadResponse",
        _field(
            "results", 1, _Field.TYPE_MESSAGE, repeated=True, type_name="QueryResult"
        ),
    )
    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file().SerializeToString())


def _message_class(name: str) -> type:
    return message_factory.GetMessageClass(
        _pool.FindMessageTypeByName(f"{_PACKAGE}.{name}")
    )


Sample = _message_class("Sample")
Label = _message_class("Label")
TimeSeries = _message_class("TimeSeries")
WriteRequest = _message_class("WriteRequest")
LabelMatcher = _message_class("LabelMatcher")
Query = _message_class("Query")
ReadRequest = _message_class("ReadRequest")
QueryResult = _message_class("QueryResult")
ReadResponse = _message_class("ReadResponse")
