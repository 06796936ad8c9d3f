"""Export public type metadata of .NET assemblies as text, JSON or XML."""

__version__ = "0.1.0"
