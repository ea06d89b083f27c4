"""Lexing and parsing of raw mbox archives into byte-range records."""

from .lexer import Lexer, lex, tokenize
from .parser import Parser, parse, parse_date

__all__ = ["Lexer", "Parser", "lex", "parse", "parse_date", "tokenize"]
