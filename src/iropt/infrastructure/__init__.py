from .io import STDIO_PATH, open_output_stream, read_input_buffer, write_text

__all__ = ["STDIO_PATH", "open_output_stream", "read_input_buffer", "write_text"]
