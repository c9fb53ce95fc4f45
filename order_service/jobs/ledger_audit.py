"""账本巡检本地执行脚本"""

import argparse
import json
import logging

from order_service.db.session import SessionLocal
from order_service.services.ledger_audit import LedgerAuditor

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def run_audit(batch_size: int = 500, session_factory=SessionLocal) -> dict:
    """执行账本巡检

    Args:
        batch_size: 每批检查的订单数量
        session_factory: 会话工厂（测试时可替换）
    """
    db = session_factory()
    try:
        report = LedgerAuditor(db).run(batch_size)
        return report.to_dict()
    except Exception as e:
        logger.error(f"巡检执行失败: {str(e)}")
        raise
    finally:
        db.rollback()
        db.close()


def main(argv=None):
    """主函数"""
    parser = argparse.ArgumentParser(description='订单账本一致性巡检工具')
    parser.add_argument(
        '--batch-size',
        type=int,
        default=500,
        help='每批检查的订单数量 (默认: 500)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='详细输出模式'
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        result = run_audit(args.batch_size)
    except Exception as e:
        print(f"❌ 执行失败: {str(e)}")
        return 2

    print(json.dumps(result, ensure_ascii=False, indent=2))
    if result["ok"]:
        print("✅ 巡检通过")
        return 0
    print("❌ 发现不一致数据")
    return 1


if __name__ == "__main__":
    exit(main())
