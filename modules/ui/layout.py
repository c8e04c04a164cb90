"""Gradio layout composition for discovery and the adjustment studio."""

from __future__ import annotations

from typing import Any, Callable, Optional

try:
    import gradio as gr
except ImportError:  # pragma: no cover
    gr = None  # type: ignore

from config.settings import AppConfig
from modules.editing.adjustments import CHANNEL_RANGES, CHANNELS, DEFAULT_ADJUSTMENTS
from modules.remote.client import StudioClient
from modules.services.storage_service import StorageService
from modules.ui.callbacks import build_callbacks

CHANNEL_LABELS = {
    "brightness": "Primary Brightness",
    "exposure": "Light Exposure",
    "hue": "Hue Rotation",
    "vibrance": "Chroma Vibrance",
    "contrast": "Black Point",
    "saturation": "Chroma Level",
    "sharpness": "Edge Sharpness",
}


def _make_adjust_handler(channel: str, on_adjust: Callable[..., Any]) -> Callable[..., Any]:
    def _handler(value: float, session: Any) -> Any:
        return on_adjust(channel, value, session)

    return _handler


def build_app(config: AppConfig, client: Optional[StudioClient] = None) -> Any:
    """Compose and return the Gradio application."""
    if gr is None:
        raise RuntimeError("Gradio is not installed; install the project dependencies first.")

    studio_client = client or StudioClient(config)
    storage = StorageService(config.output_dir)
    callbacks_map = build_callbacks(config, client=studio_client, storage=storage)

    with gr.Blocks(title="PromptMaster Studio") as demo:
        session = gr.State(value=callbacks_map["new_session"])

        with gr.Row():
            gr.Markdown("## PromptMaster · Studio & Scan")
            status = gr.Markdown("checking")
            recheck_btn = gr.Button("Check Connection Health", size="sm")
        banner = gr.Markdown("")

        with gr.Tab("Global Discovery"):
            with gr.Row():
                query = gr.Textbox(label="Describe a style or subject...", scale=4)
                scan_btn = gr.Button("Deep Scan", variant="primary", scale=1)
            findings = gr.Markdown("Scanner ready.")
            sources = gr.Markdown("")
            with gr.Row():
                prompt_number = gr.Number(label="Prompt #", value=1, precision=0)
                visualize_btn = gr.Button("Visualize Prompt")
            visualize_status = gr.Markdown("")

        with gr.Tab("Studio"):
            with gr.Row():
                with gr.Column(scale=3):
                    preview = gr.HTML("<p>No image in the studio yet.</p>")
                    with gr.Row():
                        instruction = gr.Textbox(
                            label="Neural Studio Refiner",
                            placeholder="e.g. 'Inject golden hour sunlight', 'Add hyper-realistic details'...",
                            scale=4,
                        )
                        refine_btn = gr.Button("Refine", scale=1)
                    refine_status = gr.Markdown("")
                    with gr.Row():
                        download_btn = gr.Button("Download")
                        close_btn = gr.Button("Back to Prompts")
                    download_file = gr.File(label="Exported image", interactive=False)
                    download_status = gr.Markdown("")

                with gr.Column(scale=2):
                    with gr.Row():
                        undo_btn = gr.Button("Undo", size="sm")
                        redo_btn = gr.Button("Redo", size="sm")
                        reset_btn = gr.Button("Reset", size="sm")
                    step_label = gr.Markdown("Step 1/1")
                    sliders = []
                    for channel in CHANNELS:
                        low, high = CHANNEL_RANGES[channel]
                        slider = gr.Slider(
                            label=CHANNEL_LABELS[channel],
                            minimum=low,
                            maximum=high,
                            step=1,
                            value=getattr(DEFAULT_ADJUSTMENTS, channel),
                        )
                        sliders.append(slider)

        editor_outputs = [session, preview, *sliders, step_label]

        demo.load(
            fn=callbacks_map["on_check_health"],
            inputs=[session],
            outputs=[session, status, banner],
        )
        recheck_btn.click(
            fn=callbacks_map["on_check_health"],
            inputs=[session],
            outputs=[session, status, banner],
        )
        scan_btn.click(
            fn=callbacks_map["on_discover"],
            inputs=[query, session],
            outputs=[session, findings, sources, status, banner],
        )
        visualize_btn.click(
            fn=callbacks_map["on_visualize"],
            inputs=[prompt_number, session],
            outputs=[*editor_outputs, visualize_status],
        )
        refine_btn.click(
            fn=callbacks_map["on_refine"],
            inputs=[instruction, session],
            outputs=[session, preview, refine_status],
        )
        for channel, slider in zip(CHANNELS, sliders):
            slider.change(
                fn=_make_adjust_handler(channel, callbacks_map["on_adjust"]),
                inputs=[slider, session],
                outputs=[session, preview],
            )
            slider.release(
                fn=callbacks_map["on_adjust_end"],
                inputs=[session],
                outputs=[session, step_label],
            )
        undo_btn.click(fn=callbacks_map["on_undo"], inputs=[session], outputs=editor_outputs)
        redo_btn.click(fn=callbacks_map["on_redo"], inputs=[session], outputs=editor_outputs)
        reset_btn.click(fn=callbacks_map["on_reset"], inputs=[session], outputs=editor_outputs)
        close_btn.click(fn=callbacks_map["on_close_studio"], inputs=[session], outputs=editor_outputs)
        download_btn.click(
            fn=callbacks_map["on_download"],
            inputs=[session],
            outputs=[download_file, download_status],
        )

        # Drives the cooldown countdown once per second.
        timer = gr.Timer(1.0)
        timer.tick(fn=callbacks_map["on_tick"], inputs=[session], outputs=[session, status])

    return demo
