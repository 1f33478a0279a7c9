"""初始化记录存储并写入种子数据"""
import argparse
import sys
import os

# 添加项目根目录到路径
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from loguru import logger

from config.settings import settings
from loopstore import RecordStore


def init_database(database_url=None, force=False):
    """创建存储表并写入种子数据（已写入过则跳过）"""
    logger.info("Initializing record store...")

    store = RecordStore(database_url)
    try:
        logger.info("Creating tables...")
        store.create_tables()

        if store.seed(force=force):
            logger.info("Seed data inserted")
        else:
            logger.info(f"Marker '{settings.seed_marker_key}' present, seed skipped")
    finally:
        store.close()

    logger.info("Record store initialization completed!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="初始化 Loop 记录存储")
    parser.add_argument("--db", default=None, help="数据库连接 URL")
    parser.add_argument("--force", action="store_true",
                        help="忽略种子标记，重新写入种子数据")
    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    init_database(args.db, args.force)
