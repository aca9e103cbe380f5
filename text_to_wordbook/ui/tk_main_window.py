import threading
import tkinter as tk
from tkinter import messagebox, ttk

from text_to_wordbook.app.wordbook_pipeline import Query, translate
from text_to_wordbook.config import load_options
from text_to_wordbook.domain.results import message_from_payload
from text_to_wordbook.integrations.dictionaries import Provider


class WordbookWindow(tk.Tk):
    def __init__(self):
        super().__init__()
        self.title("Text to Wordbook")
        self.geometry("820x560")
        self.minsize(640, 420)

        try:
            self.options = load_options()
        except (FileNotFoundError, ValueError) as exc:
            messagebox.showerror("Invalid settings", str(exc))
            self.destroy()
            raise SystemExit(1) from exc

        self.status_var = tk.StringVar(value="Ready.")
        self.current_query = None
        self._build_ui()

    def _build_ui(self):
        padding = {"padx": 10, "pady": 8}

        info_frame = ttk.LabelFrame(self, text="Word book")
        info_frame.grid(row=0, column=0, sticky="ew", **padding)
        try:
            provider = Provider(self.options.dict_type).name.title()
        except ValueError:
            provider = f"unknown ({self.options.dict_type})"
        ttk.Label(info_frame, text=f"Provider: {provider}").grid(row=0, column=0, sticky="w")
        ttk.Label(info_frame, text=f"Model: {self.options.volcano_model or '-'}").grid(
            row=0, column=1, sticky="w", padx=(20, 0)
        )

        main_frame = ttk.Frame(self)
        main_frame.grid(row=1, column=0, sticky="nsew", **padding)
        main_frame.columnconfigure(0, weight=1)
        main_frame.columnconfigure(1, weight=1)
        main_frame.rowconfigure(1, weight=1)

        ttk.Label(main_frame, text="Input text").grid(row=0, column=0, sticky="w")
        ttk.Label(main_frame, text="Result").grid(row=0, column=1, sticky="w")

        self.input_text = tk.Text(main_frame, wrap="word")
        self.input_text.grid(row=1, column=0, sticky="nsew", padx=(0, 8))

        self.output_text = tk.Text(main_frame, wrap="word", state="disabled")
        self.output_text.grid(row=1, column=1, sticky="nsew")

        action_frame = ttk.Frame(self)
        action_frame.grid(row=2, column=0, sticky="ew", **padding)
        action_frame.columnconfigure(2, weight=1)

        self.add_button = ttk.Button(action_frame, text="Add words", command=self._on_add)
        self.add_button.grid(row=0, column=0, sticky="w")
        self.cancel_button = ttk.Button(
            action_frame, text="Cancel", command=self._on_cancel, state="disabled"
        )
        self.cancel_button.grid(row=0, column=1, sticky="w", padx=(8, 0))
        ttk.Label(action_frame, textvariable=self.status_var).grid(row=0, column=2, sticky="e")

        self.rowconfigure(1, weight=1)
        self.columnconfigure(0, weight=1)

    def _set_output_text(self, text):
        self.output_text.configure(state="normal")
        self.output_text.delete("1.0", "end")
        self.output_text.insert("1.0", text)
        self.output_text.configure(state="disabled")

    def _on_add(self):
        text = self.input_text.get("1.0", "end").strip()
        if not text:
            messagebox.showwarning("Missing input", "Please paste a word or some text.")
            return

        self.add_button.configure(state="disabled")
        self.cancel_button.configure(state="normal")
        self.status_var.set("Extracting words...")

        query = Query(
            text=text,
            detect_from="en",
            on_completion=lambda payload: self.after(0, lambda: self._on_complete(payload)),
        )
        self.current_query = query
        thread = threading.Thread(target=self._run_request, args=(query,), daemon=True)
        thread.start()

    def _run_request(self, query):
        translate(query, self.options)

    def _on_cancel(self):
        if self.current_query is not None:
            self.current_query.cancel_token.cancel()
            self.status_var.set("Cancelling...")

    def _on_complete(self, payload):
        self.current_query = None
        message = message_from_payload(payload)
        if "error" in payload:
            self._set_output_text(f"Error:\n{message}")
            self.status_var.set("Failed.")
        else:
            self._set_output_text(message)
            self.status_var.set("Done.")
        self.add_button.configure(state="normal")
        self.cancel_button.configure(state="disabled")


def main():
    WordbookWindow().mainloop()


if __name__ == "__main__":
    main()
