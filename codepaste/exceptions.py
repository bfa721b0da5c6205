"""Exception types raised by codepaste."""


class CodepasteError(Exception): ...
class ConfigError(CodepasteError): ...
class ExtractionError(CodepasteError): ...
class ExplainError(CodepasteError): ...
