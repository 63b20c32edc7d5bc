import json
import os
import urwid

from .export import jsonable
from .properties import ArrayValue, MapValue, Property, SetValue, StructValue


def _describe(value):
    return json.dumps(jsonable(value))


def _is_property_list(value):
    return isinstance(value, tuple) and all(isinstance(item, Property) for item in value)


def _flatten(key, type_, value):
    if _is_property_list(value):
        yield key, f"(properties: {len(value)})", type_
        yield from flatten_properties(value, f"{key}.")
    elif isinstance(value, StructValue):
        yield from _flatten(key, value.struct_type, value.value)
    elif isinstance(value, (ArrayValue, SetValue)):
        yield key, f"(length: {len(value.elements)})", type_
        element_type = getattr(value, "struct_type", None) or value.element_type
        for i, element in enumerate(value.elements):
            yield from _flatten(f"{key}[{i}]", element_type, element)
    elif isinstance(value, MapValue):
        yield key, f"(length: {len(value.entries)})", type_
        for k, v in value.entries:
            yield from _flatten(f"{key}[{_describe(k)}]", value.value_type, v)
    else:
        yield key, _describe(value), type_


def flatten_properties(properties, prefix=""):
    """
    Yield (key, value, type) rows for a property list, with nested values
    expanded below their parent using dotted and indexed keys.
    """
    for prop in properties:
        key = \
            f"{prefix}{prop.name}[{prop.index}]" if prop.index else \
            f"{prefix}{prop.name}"
        yield from _flatten(key, prop.type, prop.value)


class SavegameBrowser:
    palette = [
        ("body", "light gray", "black"),
        ("focus", "light gray", "dark blue", "standout"),
        ("head", "yellow", "black", "standout"),
        ("foot", "light gray", "black"),
        ("key", "light cyan", "black", "underline"),
        ("title", "white", "black", "bold"),
    ]

    footer_text = [
        ("title", "Savegame Browser"),
        "    ",
        ("key", "UP"),
        ",",
        ("key", "DOWN"),
        ",",
        ("key", "PAGE UP"),
        ",",
        ("key", "PAGE DOWN"),
        "  ",
        ("key", "LEFT"),
        ",",
        ("key", "RIGHT"),
        "  ",
        ("key", "Q"),
    ]

    def LevelFocus(self):
        self.objects.clear()

        if not self.levels or self.levels.focus is None:
            return

        level = self._levels[self.levels.focus]
        for header in level.object_headers:
            button = urwid.Button(str(header.instance_name))
            self.objects.append(urwid.AttrMap(button, None, focus_map="reversed"))

    def ObjectFocus(self):
        self.fields.clear()

        if not self.objects or self.objects.focus is None:
            return

        level = self._levels[self.levels.focus]
        header = level.object_headers[self.objects.focus]
        obj = level.objects[self.objects.focus]

        for key, value, type_ in self.object_rows(header, obj):
            key_field = urwid.AttrMap(urwid.Text(key), None, focus_map="reversed")
            self.fields.append(
                urwid.Columns(
                    [(50, key_field), urwid.Text(value), (20, urwid.Text(type_))],
                    dividechars=2,
                )
            )

    @staticmethod
    def object_rows(header, obj):
        yield "type_path", _describe(header.type_path), header.object_type.name
        if hasattr(obj, "parent_reference"):
            yield "parent_reference", _describe(obj.parent_reference), "ObjectReference"
            for i, component in enumerate(obj.components):
                yield f"components[{i}]", _describe(component), "ObjectReference"
        yield from flatten_properties(obj.properties)

    def __init__(self, savegame):
        self._savegame = savegame
        self._levels = list(savegame.body.levels) + [savegame.body.persistent_level]

        self.levels = urwid.SimpleFocusListWalker([])
        self.objects = urwid.SimpleFocusListWalker([])
        self.fields = urwid.SimpleFocusListWalker([])

        for level in self._levels:
            label = \
                "Persistent Level" if level.is_persistent else \
                str(level.sublevel_name)
            button = urwid.Button(label)
            self.levels.append(urwid.AttrMap(button, None, focus_map="reversed"))
        self.LevelFocus()
        self.ObjectFocus()

        urwid.connect_signal(self.levels, "modified", self.LevelFocus)
        urwid.connect_signal(self.objects, "modified", self.ObjectFocus)

        self.body = urwid.Columns(
            [(30, urwid.ListBox(self.levels)), (40, urwid.ListBox(self.objects)), urwid.ListBox(self.fields)],
            dividechars=2,
        )

        filename = os.path.basename(savegame.filename) if savegame.filename else "-"
        self.header = urwid.Text(f"Savegame: {filename} ({savegame.header.session_name})")
        self.footer = urwid.AttrMap(urwid.Text(self.footer_text), "foot")
        self.view = urwid.Frame(
            urwid.AttrMap(self.body, "body"), header=urwid.AttrMap(self.header, "head"), footer=self.footer
        )

    def run(self):
        """Run the program."""

        self.loop = urwid.MainLoop(self.view, self.palette, unhandled_input=self.unhandled_input)
        self.loop.run()

    def unhandled_input(self, k):
        if k in ("q", "Q"):
            raise urwid.ExitMainLoop()
