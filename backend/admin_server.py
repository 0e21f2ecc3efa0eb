import uvicorn
import logging
import sys
import os
from pathlib import Path

# 添加当前目录到Python路径
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# 加载 .env 文件 (强制覆盖已存在的环境变量)
env_file = Path(__file__).parent / ".env"
if env_file.exists():
    from dotenv import load_dotenv
    load_dotenv(env_file, override=True)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

from devops.db.init_db import init_db
from devops.db.session import get_db_session
from devops.main import create_app

app = create_app()


@app.on_event("startup")
def bootstrap_database():
    with get_db_session() as db:
        init_db(db)


if __name__ == "__main__":
    uvicorn.run("admin_server:app", host="0.0.0.0", port=8000, reload=True, timeout_keep_alive=120)
