import os
import uvicorn

if __name__ == "__main__":
    # 設定の読み込みと環境変数のセットアップ
    # ロガーがログディレクトリを参照する前に行う
    from config import settings
    settings.setup_environment()

    # アプリケーションデータディレクトリの確保
    os.makedirs(settings.USER_DATA_DIR, exist_ok=True)

    from main import app

    port = int(os.environ.get("MANTRA_PORT", settings.MANTRA_PORT))

    print(f"Starting Mantra Backend Server on port {port}...")
    print(f"User Data Directory: {settings.USER_DATA_DIR}")

    uvicorn.run(app, host="127.0.0.1", port=port, reload=False, workers=1)
