"""Pipeline stages for interpreting tool invocation output."""
