import ctypes
import enum

from rich.pretty import pprint

from argonym import *


Choice = enum.Enum("Choice", ["abc", "def", "ghi"])


parser = Parser(
    Field("__program", str, default="showcase"),
    Field("__usage", str, default="[OPTIONS]"),
    Field("__description", str, default="Demonstrates every argument kind."),
    Field("__version", str, default="0.1.0"),
    Field("int", int, "a signed integer", default=0),
    Field("uint", ctypes.c_uint64, "an unsigned 64-bit integer", default=0),
    Field("_flt", float, "a floating-point number", default=0.0),
    Field("str", str, "some text", default=""),
    Field("choice", Choice, "pick a variant", default=Choice.abc),
    Field("flag", bool, "a boolean flag"),
    Field("NAME:*", float, "numbers to collect"),
    colorful=True,
)


if __name__ == '__main__':
    pprint(invoke(parser))
