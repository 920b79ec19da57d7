"""Process exit codes for the logicgrade CLI."""

EXIT_SUCCESS = 0
EXIT_ERROR = 1
# not equivalent, proof has errors, formula malformed
EXIT_NEGATIVE = 2
EXIT_INDETERMINATE = 3
