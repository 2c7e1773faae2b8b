"""
Simple text-based UI for the EatLocal order flow
"""
from typing import Dict, Any, Optional

from core.marketplace import EatLocalMarketplace
from services.cart_service import format_currency


class SimpleOrderUI:
    """Simple text-based order interface"""

    def __init__(self, marketplace: EatLocalMarketplace, session_id: str = "console_session",
                 user_id: Optional[str] = None):
        self.market = marketplace
        self.session_id = session_id
        self.user_id = user_id
        self.promo_code = None

    def run(self):
        """Run the console order loop"""
        print("EatLocal")
        print("Type a dish to search (e.g. 'bunny chow', 'peri-peri chicken').")
        print("Commands: cart, clear, remove <id>, promo <code>, help <question>, order, quit")

        while True:
            user_input = input("\nWhat would you like? ").strip()
            command, _, argument = user_input.partition(" ")
            command = command.lower()

            if command in ["quit", "exit"]:
                print("Thanks for ordering with EatLocal!")
                break

            elif command == "cart":
                self._show_cart()

            elif command == "clear":
                self.market.clear_cart(self.session_id)
                print("Your cart is now empty.")

            elif command == "remove" and argument:
                result = self.market.remove_from_cart(self.session_id, argument.strip())
                print(result["message"])

            elif command == "promo" and argument:
                self._apply_promo(argument)

            elif command == "help" and argument:
                reply = self.market.ask_support(argument)
                print(f"Support: {reply['content']}")

            elif command == "order":
                self._process_order()

            elif user_input:
                self._handle_menu_search(user_input)

    def _show_cart(self):
        """Show cart contents"""
        cart = self.market.get_cart_details(self.session_id)
        print(f"\n{cart['message']}")
        if cart['cart_items']:
            print(f"From {cart['restaurant_name']}:")
            for item in cart['cart_items']:
                print(f"- [{item['menu_item_id']}] {item['name']} x{item['quantity']}: "
                      f"{format_currency(item['line_total'])}")
            summary = cart['summary']
            print(f"Subtotal: {format_currency(summary['subtotal'])}")
            print(f"Service fee: {format_currency(summary['service_fee'])}")
            print(f"Total before delivery: {format_currency(summary['total_amount'])}")

    def _apply_promo(self, code: str):
        result = self.market.apply_promo_code(self.session_id, code, self.user_id)
        if result["valid"]:
            self.promo_code = code
            print(f"Promo applied: {result['label']} (-{format_currency(result['discount_amount'])})")
        else:
            print(result["error_message"])

    def _process_order(self):
        """Process final order"""
        order_result = self.market.place_order(
            self.session_id, user_id=self.user_id, promo_code=self.promo_code
        )

        if order_result["success"]:
            self.promo_code = None
            print(order_result["message"])
            print(f"Pickup code: {order_result['order']['pickup_code']}")
        else:
            print(f"Order failed: {order_result['error']}")

    def _handle_menu_search(self, user_input: str):
        """Search the menu and let the user pick a result"""
        search_result = self.market.find_menu_items(user_input, limit=5)

        if not (search_result["success"] and search_result["matches"]):
            print("Nothing on the menu matches that. Try another dish name.")
            return

        matches = search_result["matches"]
        print(f"\nResults for '{user_input}':")
        for index, item in enumerate(matches, start=1):
            print(f"{index}. {item['name']} - {item['restaurant_name']} ({format_currency(item['price'])})")

        choice = input("Pick a number (enter to skip): ").strip()
        if not choice.isdigit() or not 1 <= int(choice) <= len(matches):
            return

        selected = matches[int(choice) - 1]
        result = self.market.add_to_cart(self.session_id, selected['menu_item_id'])
        self._show_add_result(result)

    def _show_add_result(self, result: Dict[str, Any]):
        """Show result of adding an item, resolving restaurant conflicts"""
        if result.get("conflict"):
            answer = input(f"{result['message']} (y/n) ").strip().lower()
            if answer in ["y", "yes"]:
                result = self.market.confirm_restaurant_change(self.session_id)
            else:
                result = self.market.cancel_restaurant_change(self.session_id)
            print(result["message"])
        elif result["success"]:
            print(result["message"])
        else:
            print(result.get("error") or result.get("message"))
