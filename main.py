"""
Main entry point for the EatLocal console
"""
import sys

import config
from core.marketplace import EatLocalMarketplace
from init_db import init_database
from ui.simple_ui import SimpleOrderUI


def main():
    # 프로그램의 메인 진입점 - 메뉴 선택 제공
    config.configure_logging()

    print("=== EatLocal ===")
    print("1. Console ordering")
    print("2. Seed demo data")
    print("3. Quit")

    while True:
        choice = input("\nChoose (1-3): ").strip()

        if choice == "1":
            market = EatLocalMarketplace(config.DB_PATH)
            SimpleOrderUI(market).run()
            break

        elif choice == "2":
            init_database(config.DB_PATH)

        elif choice == "3":
            sys.exit(0)

        else:
            print("Please choose 1-3.")


if __name__ == "__main__":
    main()
