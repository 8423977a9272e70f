from .opt_main import as_exit_code, run_opt_main
from .splitting import merge_outputs, split_input_buffer

__all__ = ["as_exit_code", "merge_outputs", "run_opt_main", "split_input_buffer"]
