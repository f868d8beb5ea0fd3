"""One-off script for debugging a generation round trip against a running server."""

from pathlib import Path

from config.settings import load_config
from modules.services.api_client import ApiClientError, ImageApiClient
from modules.utils.image_utils import data_url_to_image, file_to_data_url


def main(reference_path: str | None = None) -> None:
    # 1. 서버(app.py)가 실행 중이어야 함
    config = load_config()
    client = ImageApiClient(config)

    reference = file_to_data_url(reference_path) if reference_path else None

    # 2. 한국어 프롬프트는 서버에서 영어 지시문이 앞에 붙는다
    prompt = "일몰이 보이는 아름다운 해변, 야자수가 있고 파도가 부드럽게 치는 모습"
    try:
        result = client.generate(prompt, reference_image=reference)
    except ApiClientError as exc:
        print("오류:", exc.message, exc.status_code)
        return

    print("응답 유형:", result.type)
    print("응답 텍스트:", result.text)
    if result.image_url:
        out_path = Path("debug_generate_output.png")
        data_url_to_image(result.image_url).save(out_path)
        print("이미지 저장:", out_path.resolve())
    else:
        print("이미지가 반환되지 않았습니다.")


if __name__ == "__main__":
    import sys

    main(sys.argv[1] if len(sys.argv) > 1 else None)
