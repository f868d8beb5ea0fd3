"""Gradio layout composition for the generator and composite tabs."""

from __future__ import annotations

from typing import Any, Callable, Optional

import gradio as gr

from config.settings import AppConfig
from modules.services.api_client import ImageApiClient
from modules.services.composite import DEFAULT_MAIN_PROMPT, default_slots, slot_choices
from modules.services.session_state import StudioSession
from modules.services.storage_service import StorageService
from modules.ui.callbacks import build_callbacks


def _with_retry_button(fn: Callable[..., tuple]) -> Callable[..., tuple]:
    """Turn the trailing retry label of a generator view into a button update."""

    def wrapper(*args: Any) -> tuple:
        *values, retry_label = fn(*args)
        return (*values, gr.update(value=retry_label or "다시 시도", visible=retry_label is not None))

    return wrapper


def build_app(
    config: AppConfig,
    client: Optional[ImageApiClient] = None,
    storage: Optional[StorageService] = None,
) -> gr.Blocks:
    """Compose and return the Gradio application."""
    callbacks_map = build_callbacks(config, client=client, storage=storage)
    slots = default_slots()

    with gr.Blocks(title="Gemini AI Image Generator") as demo:
        gr.Markdown("## Gemini AI 이미지 생성기\n텍스트 설명을 입력하면 AI가 이미지를 생성합니다")
        session = gr.State(value=StudioSession())

        # 이미지 생성
        with gr.Tab("이미지 생성"):
            with gr.Row():
                with gr.Column():
                    with gr.Row():
                        multi_turn = gr.Checkbox(label="멀티턴 편집 모드 (대화형 이미지 편집)", value=True)
                        reset_btn = gr.Button("대화 초기화", size="sm")
                    reference_upload = gr.Image(
                        label="참조 / 시작 이미지 (선택사항)",
                        type="filepath",
                        sources=["upload"],
                    )
                    with gr.Row():
                        reference_preview = gr.Image(label="현재 참조 이미지", type="pil", interactive=False)
                        reference_label = gr.Markdown("")
                    clear_reference_btn = gr.Button("이미지 제거", size="sm")
                    history_gallery = gr.Gallery(
                        label="편집 히스토리 (이미지를 클릭하면 해당 시점으로 되돌아갑니다)",
                        columns=4,
                        allow_preview=False,
                    )
                    prompt = gr.Textbox(
                        label="프롬프트 입력",
                        lines=4,
                        placeholder="예: 일몰이 보이는 아름다운 해변, 야자수가 있고 파도가 부드럽게 치는 모습",
                    )
                    counter = gr.Markdown(f"0 / {config.max_prompt_length}")
                    with gr.Row():
                        generate_btn = gr.Button("이미지 생성", variant="primary")
                        cancel_btn = gr.Button("요청 취소")
                        retry_btn = gr.Button("다시 시도", visible=False)

                with gr.Column():
                    output_image = gr.Image(label="생성 결과", type="pil", interactive=False)
                    output_text = gr.Textbox(label="응답 텍스트", interactive=False)
                    status = gr.Markdown("준비 완료.")
                    download_btn = gr.Button("이미지 다운로드")
                    download_file = gr.File(label="다운로드", interactive=False)

            view_outputs = [
                session,
                prompt,
                output_image,
                output_text,
                status,
                history_gallery,
                reference_preview,
                reference_label,
                retry_btn,
            ]

            prompt.change(fn=callbacks_map["on_prompt_change"], inputs=[prompt], outputs=[counter])
            reference_upload.upload(
                fn=_with_retry_button(callbacks_map["on_upload_reference"]),
                inputs=[session, prompt, reference_upload],
                outputs=view_outputs,
            )
            clear_reference_btn.click(
                fn=_with_retry_button(callbacks_map["on_clear_reference"]),
                inputs=[session, prompt],
                outputs=view_outputs,
            )
            multi_turn.change(
                fn=_with_retry_button(callbacks_map["on_toggle_multi_turn"]),
                inputs=[session, prompt, multi_turn],
                outputs=view_outputs,
            )
            reset_btn.click(
                fn=_with_retry_button(callbacks_map["on_reset_conversation"]),
                inputs=[session, prompt],
                outputs=view_outputs,
            )

            select_history = _with_retry_button(callbacks_map["on_select_history"])

            def on_gallery_select(state: StudioSession, text: str, evt: gr.SelectData) -> tuple:
                return select_history(state, text, evt.index)

            history_gallery.select(
                fn=on_gallery_select,
                inputs=[session, prompt],
                outputs=view_outputs,
            )

            generate_event = generate_btn.click(
                fn=_with_retry_button(callbacks_map["on_generate"]),
                inputs=[session, prompt],
                outputs=view_outputs,
                concurrency_limit=None,
            )
            retry_event = retry_btn.click(
                fn=_with_retry_button(callbacks_map["on_retry"]),
                inputs=[session, prompt],
                outputs=view_outputs,
                concurrency_limit=None,
            )
            cancel_btn.click(
                fn=_with_retry_button(callbacks_map["on_cancel"]),
                inputs=[session, prompt],
                outputs=view_outputs,
                cancels=[generate_event, retry_event],
            )
            download_btn.click(
                fn=callbacks_map["on_download"],
                inputs=[session],
                outputs=[download_file],
            )

        # 다중 이미지 합성
        with gr.Tab("다중 이미지 합성"):
            slot_images = []
            slot_prompts = []
            slot_descriptions = []
            with gr.Row():
                for slot in slots:
                    with gr.Column(min_width=160):
                        image = gr.Image(
                            label=f"{slot.slot_id}. {slot.description}",
                            type="filepath",
                            sources=["upload"],
                        )
                        description = gr.Textbox(label="설명", value=slot.description)
                        slot_prompt = gr.Textbox(label="이미지 프롬프트", value=slot.prompt, lines=2)
                        remove_btn = gr.Button("제거", size="sm")
                        remove_btn.click(
                            fn=callbacks_map["on_remove_slot"],
                            inputs=None,
                            outputs=[image, slot_prompt],
                        )
                        slot_images.append(image)
                        slot_prompts.append(slot_prompt)
                        slot_descriptions.append(description)

            main_slot = gr.Radio(
                label="메인 이미지",
                choices=slot_choices(slots),
                value=next(slot.slot_id for slot in slots if slot.is_main),
            )
            image_count = gr.Markdown("0개 이미지 업로드됨")
            main_prompt = gr.Textbox(label="메인 프롬프트", value=DEFAULT_MAIN_PROMPT, lines=3)
            composite_btn = gr.Button("이미지 합성", variant="primary")
            composite_image = gr.Image(label="생성 결과", type="pil", interactive=False)
            composite_text = gr.Textbox(label="응답 텍스트", interactive=False)
            composite_status = gr.Markdown("")

            for image in slot_images:
                image.change(
                    fn=callbacks_map["on_composite_change"],
                    inputs=slot_images,
                    outputs=[image_count],
                )

            slot_count = len(slots)
            generate_composite = callbacks_map["on_generate_composite"]

            def on_composite(main_text: str, main_id: str, *values: Any) -> tuple:
                return generate_composite(
                    main_text,
                    main_id,
                    values[:slot_count],
                    values[slot_count : 2 * slot_count],
                    values[2 * slot_count :],
                )

            composite_btn.click(
                fn=on_composite,
                inputs=[main_prompt, main_slot, *slot_images, *slot_prompts, *slot_descriptions],
                outputs=[composite_image, composite_text, composite_status],
            )

    return demo
