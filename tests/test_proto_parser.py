import os
import tempfile

import pytest

from protoc_ts.parser.errors import ProtoParseError, UnbalancedScopeError
from protoc_ts.parser.proto_ast import (
    EntryKind,
    EnumValueEntry,
    FieldEntry,
    OptionEntry,
    TypeRef,
)
from protoc_ts.parser.proto_parser import parse_proto, parse_proto_file


def _write_temp_proto(content: str) -> str:
    fd, path = tempfile.mkstemp(suffix=".proto")
    os.write(fd, content.encode())
    os.close(fd)
    return path


TUTORIAL_PROTO = """\
// Example schema
syntax = "proto3";

package tutorial;

import "google/protobuf/timestamp.proto"; // package: google.protobuf
import "./commons.proto"; // package: common

option java_package = "com.example.tutorial";

message Person {
    string name = 1;
    int32 id = 2;
    optional string email = 3;

    enum PhoneType {
        MOBILE = 0;
        HOME = 1;
        WORK = 2;
    }

    message PhoneNumber {
        string number = 1;
        PhoneType type = 2;
    }

    repeated PhoneNumber phones = 4;
    google.protobuf.Timestamp last_updated = 5;
}

service TutorialService {
    option deprecated = true;
    rpc GetData (Person) returns (common.Reply) {}
    rpc SetData(Person)returns(common.Reply);
}
"""


class TestHeader:
    def test_syntax_and_package(self):
        doc = parse_proto(TUTORIAL_PROTO)
        assert doc.syntax == "proto3"
        assert doc.package == "tutorial"

    def test_first_occurrence_wins(self):
        doc = parse_proto('syntax = "proto3";\nsyntax = "proto2";\npackage a;\npackage b;')
        assert doc.syntax == "proto3"
        assert doc.package == "a"

    def test_empty_input(self):
        doc = parse_proto("")
        assert doc.syntax == ""
        assert doc.top_level == ()
        assert doc.services == ()


class TestImports:
    def test_annotations_rekey_imports(self):
        doc = parse_proto(TUTORIAL_PROTO)
        assert doc.import_keys() == ["google.protobuf", "common"]

        timestamp = doc.get_import("google.protobuf")
        assert timestamp.directory_path == "google/protobuf"
        assert timestamp.raw_import_path == "google/protobuf/timestamp.proto"
        assert timestamp.referenced_type_names == ("Timestamp",)

        common = doc.get_import("common")
        assert common.directory_path == "."
        assert common.referenced_type_names == ("Reply",)

    def test_annotation_must_follow_import(self):
        proto = """\
import "a/b.proto";
// unrelated
// package: other
"""
        doc = parse_proto(proto)
        assert doc.import_keys() == ["b"]

    def test_annotation_without_colon(self):
        doc = parse_proto('import "a/b.proto"; // package other')
        assert doc.import_keys() == ["other"]

    def test_comment_starting_with_package_word_is_not_an_annotation(self):
        doc = parse_proto('import "a/money.proto"; // packaged with the billing schema')
        assert doc.import_keys() == ["money"]

    def test_rpc_references_recorded(self):
        proto = """\
import "pkg/user.proto";

service Users {
    rpc GetUser (user.Request) returns (user.Response);
}
"""
        doc = parse_proto(proto)
        assert doc.get_import("user").referenced_type_names == ("Request", "Response")
        method = doc.services[0].rpcs[0]
        assert method.argument == TypeRef(local_name="Request", qualifier="user")
        assert method.return_type == TypeRef(local_name="Response", qualifier="user")

    def test_state_does_not_leak_between_parses(self):
        parse_proto('import "pkg/user.proto";\nmessage A { user.B b = 1; }')
        doc = parse_proto("message C { int32 x = 1; }")
        assert doc.imports == ()
        assert [d.name for d in doc.declarations] == ["C"]


class TestQuotedOptions:
    def test_url_option_does_not_swallow_following_message(self):
        doc = parse_proto('option (docs.url) = "https://example.com/api";\nmessage A { int32 id = 1; }')
        assert [d.name for d in doc.declarations] == ["A"]
        assert doc.declarations[0].fields[0].name == "id"


class TestMessages:
    def test_body_order_preserved(self):
        doc = parse_proto(TUTORIAL_PROTO)
        assert doc.top_level[0] == OptionEntry(name="java_package", value="com.example.tutorial")

        person = doc.top_level[1]
        assert person.kind is EntryKind.MESSAGE
        assert [e.name for e in person.body] == [
            "name", "id", "email", "PhoneType", "PhoneNumber", "phones", "last_updated",
        ]
        assert [f.declaration_order for f in person.fields] == [0, 1, 2, 3, 4]

    def test_field_modifiers(self):
        doc = parse_proto(TUTORIAL_PROTO)
        fields = {f.name: f for f in doc.top_level[1].fields}

        assert fields["email"].optional is True
        assert fields["email"].repeated is False
        assert fields["phones"].repeated is True
        assert fields["phones"].type_ref == TypeRef(local_name="PhoneNumber")
        assert fields["last_updated"].type_ref == TypeRef(
            local_name="Timestamp", qualifier="google.protobuf"
        )

    def test_repeated_string_field(self):
        doc = parse_proto("message M {\n    repeated string tags = 3;\n}")
        assert doc.declarations[0].body == (
            FieldEntry(
                name="tags",
                type_ref=TypeRef(local_name="string"),
                number=3,
                declaration_order=0,
                repeated=True,
                optional=False,
            ),
        )

    def test_nested_enum(self):
        doc = parse_proto("message Car {\n    enum Color { RED = 0; BLUE = 1; }\n}")
        color = doc.declarations[0].nested[0]
        assert color.kind is EntryKind.ENUM
        assert color.name == "Color"
        assert color.body == (EnumValueEntry("RED", 0), EnumValueEntry("BLUE", 1))

    def test_deep_nesting(self):
        proto = """\
message A {
    message B {
        message C {
            message D {
                int32 x = 1;
            }
        }
    }
    int32 after = 2;
}
"""
        doc = parse_proto(proto)
        a = doc.declarations[0]
        d = a.nested[0].nested[0].nested[0]
        assert d.name == "D"
        assert d.fields[0].name == "x"
        assert [f.name for f in a.fields] == ["after"]

    def test_field_numbers_not_validated(self):
        doc = parse_proto("message M { int32 a = 7; int32 b = 7; int32 c = 0x10; }")
        assert [f.number for f in doc.declarations[0].fields] == [7, 7, 16]

    def test_top_level_enum(self):
        doc = parse_proto("enum Status { OK = 0; option allow_alias = true; FAILED = 1; }")
        status = doc.declarations[0]
        assert status.kind is EntryKind.ENUM
        assert status.body[1] == OptionEntry("allow_alias", "true")
        assert [v.name for v in status.values] == ["OK", "FAILED"]


class TestEnums:
    def test_duplicate_values_accepted(self):
        doc = parse_proto("enum E { A = 1; B = 1; }")
        assert [(v.name, v.value) for v in doc.declarations[0].values] == [("A", 1), ("B", 1)]

    def test_values_not_required_to_start_at_zero(self):
        doc = parse_proto("enum E { A = 5; B = -1; }")
        assert [v.value for v in doc.declarations[0].values] == [5, -1]

    def test_enum_value_options_ignored(self):
        doc = parse_proto("enum E { A = 0 [deprecated = true]; }")
        assert doc.declarations[0].values == [EnumValueEntry("A", 0)]


class TestServices:
    def test_methods_and_options(self):
        doc = parse_proto(TUTORIAL_PROTO)
        service = doc.services[0]
        assert service.name == "TutorialService"
        assert service.methods[0] == OptionEntry("deprecated", "true")
        assert [m.name for m in service.rpcs] == ["GetData", "SetData"]
        assert service.rpcs[1].argument == TypeRef(local_name="Person")

    def test_rpc_with_option_body(self):
        proto = """\
service Api {
    rpc Get (Req) returns (Res) {
        option idempotency_level = NO_SIDE_EFFECTS;
    }
    rpc Put (Req) returns (Res);
}
"""
        doc = parse_proto(proto)
        assert [m.name for m in doc.services[0].methods] == ["Get", "Put"]

    def test_streaming_modifier_ignored(self):
        doc = parse_proto("service Api { rpc Watch (stream Req) returns (stream Res); }")
        method = doc.services[0].rpcs[0]
        assert method.argument.local_name == "Req"
        assert method.return_type.local_name == "Res"

    def test_multiple_services_in_order(self):
        doc = parse_proto("service A {}\nservice B {}")
        assert [s.name for s in doc.services] == ["A", "B"]


class TestLenientStatements:
    def test_stray_field_at_top_level_ignored(self):
        doc = parse_proto("int32 x = 1;\nmessage A {}")
        assert [d.name for d in doc.top_level] == ["A"]

    def test_reserved_ignored(self):
        doc = parse_proto("message M { reserved 2, 15; reserved \"foo\"; int32 a = 1; }")
        assert [f.name for f in doc.declarations[0].fields] == ["a"]

    def test_oneof_accepted_opaquely(self):
        proto = """\
message Shape {
    oneof kind {
        string circle = 1;
        string square = 2;
    }
    int32 sides = 3;
}
"""
        doc = parse_proto(proto)
        assert [f.name for f in doc.declarations[0].fields] == ["sides"]

    def test_map_field_ignored(self):
        doc = parse_proto("message M { map<string, int32> counts = 1; int32 a = 2; }")
        assert [f.name for f in doc.declarations[0].fields] == ["a"]

    def test_field_in_service_ignored(self):
        doc = parse_proto("service Api { int32 x = 1; }")
        assert doc.services[0].methods == ()


class TestUnbalancedScope:
    def test_unclosed_container(self):
        with pytest.raises(UnbalancedScopeError, match="Outer > Inner"):
            parse_proto("message Outer {\n    message Inner {\n        int32 x = 1;")

    def test_unclosed_after_partial_close(self):
        with pytest.raises(UnbalancedScopeError, match=r"1 container\(s\) still open \(Outer\)"):
            parse_proto("message Outer {\n    message Inner {\n    }")

    def test_extra_closing_brace(self):
        with pytest.raises(UnbalancedScopeError, match="Statement 3"):
            parse_proto("message A {\n}\n}")

    def test_is_a_parse_error(self):
        with pytest.raises(ProtoParseError):
            parse_proto("}")


class TestParseFile:
    def test_parse_file(self):
        path = _write_temp_proto(TUTORIAL_PROTO)
        try:
            doc = parse_proto_file(path)
            assert doc.package == "tutorial"
            assert doc == parse_proto(TUTORIAL_PROTO)
        finally:
            os.unlink(path)

    def test_open_and_close_statements_balance(self):
        from protoc_ts.parser.proto_preprocessor import split_statements
        from protoc_ts.parser.proto_tokenizer import StatementKind, classify_statement

        kinds = [classify_statement(s).kind for s in split_statements(TUTORIAL_PROTO)]
        opened = sum(
            k in (StatementKind.MESSAGE, StatementKind.ENUM, StatementKind.SERVICE)
            for k in kinds
        )
        assert opened == kinds.count(StatementKind.CLOSE)
