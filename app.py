from flask import Flask, request, jsonify, session
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException
import uuid
import logging

import config
from core.marketplace import EatLocalMarketplace
from models.cart import NewCartItem
from services.chatbot_service import FAQ_CATEGORIES
from schemas import (
    AddCartItemRequest, UpdateCartItemRequest, ValidatePromoRequest,
    PlaceOrderRequest, ChatRequest, CloseChatRequest, RateFAQRequest,
    DeliveryCheckRequest, CreatePromoCodeRequest, UpdatePromoCodeRequest,
    ConversionRequest
)

logger = logging.getLogger(__name__)


def create_app(marketplace: EatLocalMarketplace = None) -> Flask:
    app = Flask(__name__)
    app.secret_key = config.SECRET_KEY
    market = marketplace or EatLocalMarketplace(config.DB_PATH)

    def current_session_id() -> str:
        # Get or create session ID
        if 'session_id' not in session:
            session['session_id'] = str(uuid.uuid4())
        return session['session_id']

    def parse(schema):
        return schema.model_validate(request.get_json(silent=True) or {})

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        return jsonify({'error': error.errors(include_url=False, include_context=False, include_input=False)}), 400

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        if isinstance(error, HTTPException):
            return error
        logger.exception("Unhandled API error")
        return jsonify({'error': 'Something went wrong. Please try again.'}), 500

    @app.route('/api/cart', methods=['GET'])
    def get_cart():
        return jsonify(market.get_cart_details(current_session_id()))

    @app.route('/api/cart', methods=['DELETE'])
    def clear_cart():
        return jsonify(market.clear_cart(current_session_id()))

    @app.route('/api/cart/items', methods=['POST'])
    def add_cart_item():
        body = parse(AddCartItemRequest)
        session_id = current_session_id()

        if body.is_inline():
            result = market.add_item_to_cart(session_id, NewCartItem(
                menu_item_id=body.menu_item_id,
                name=body.name,
                price=body.price,
                restaurant_id=body.restaurant_id,
                restaurant_name=body.restaurant_name,
                image_url=body.image_url,
                special_instructions=body.special_instructions
            ))
        else:
            result = market.add_to_cart(session_id, body.menu_item_id, body.special_instructions)

        if result.get('conflict'):
            return jsonify(result), 409
        return jsonify(result), 200 if result['success'] else 404

    @app.route('/api/cart/items/<menu_item_id>', methods=['DELETE'])
    def remove_cart_item(menu_item_id):
        result = market.remove_from_cart(current_session_id(), menu_item_id)
        return jsonify(result), 200 if result['success'] else 404

    @app.route('/api/cart/items/<menu_item_id>', methods=['PATCH'])
    def update_cart_item(menu_item_id):
        body = parse(UpdateCartItemRequest)
        session_id = current_session_id()

        result = {'success': False, 'message': 'Nothing to update.'}
        if body.special_instructions is not None:
            result = market.update_cart_instructions(session_id, menu_item_id, body.special_instructions)
        if body.quantity is not None:
            result = market.update_cart_quantity(session_id, menu_item_id, body.quantity)
        return jsonify(result), 200 if result['success'] else 400

    @app.route('/api/cart/restaurant-change/confirm', methods=['POST'])
    def confirm_restaurant_change():
        result = market.confirm_restaurant_change(current_session_id())
        return jsonify(result), 200 if result['success'] else 400

    @app.route('/api/cart/restaurant-change/cancel', methods=['POST'])
    def cancel_restaurant_change():
        return jsonify(market.cancel_restaurant_change(current_session_id()))

    @app.route('/api/promo/validate', methods=['POST'])
    def validate_promo():
        body = parse(ValidatePromoRequest)
        session_id = current_session_id()
        user_id = request.headers.get('X-User-Id')

        if body.order_total is None:
            result = market.apply_promo_code(session_id, body.code, user_id, body.service_type.value)
        else:
            result = market.promo_service.validate_promo_code(
                body.code, body.order_total, user_id=user_id,
                restaurant_id=body.restaurant_id, service_type=body.service_type.value
            ).to_dict()
        return jsonify(result)

    @app.route('/api/promo/available', methods=['GET'])
    def available_promos():
        return jsonify(market.get_available_promo_codes(
            request.headers.get('X-User-Id'), request.args.get('restaurant_id')
        ))

    @app.route('/api/promo/history', methods=['GET'])
    def promo_history():
        return jsonify(market.get_promo_code_history(request.headers.get('X-User-Id')))

    @app.route('/api/admin/promo-codes', methods=['GET'])
    def list_promo_codes():
        return jsonify(market.list_promo_codes())

    @app.route('/api/admin/promo-codes', methods=['POST'])
    def create_promo_code():
        body = parse(CreatePromoCodeRequest)
        result = market.create_promo_code(body.model_dump(mode='json'), request.headers.get('X-User-Id'))
        if result['success']:
            return jsonify(result), 201
        return jsonify(result), 401 if result['error'] == 'Not authenticated' else 400

    @app.route('/api/admin/promo-codes/<promo_code_id>', methods=['PATCH'])
    def update_promo_code(promo_code_id):
        body = parse(UpdatePromoCodeRequest)
        result = market.update_promo_code(promo_code_id, body.model_dump(mode='json', exclude_unset=True))
        if result['success']:
            return jsonify(result)
        return jsonify(result), 404 if result['error'] == 'Promo code not found' else 400

    @app.route('/api/admin/promo-codes/<promo_code_id>', methods=['DELETE'])
    def deactivate_promo_code(promo_code_id):
        result = market.deactivate_promo_code(promo_code_id)
        return jsonify(result), 200 if result['success'] else 404

    @app.route('/api/delivery/check', methods=['POST'])
    def check_delivery():
        body = parse(DeliveryCheckRequest)
        return jsonify(market.check_delivery(**body.model_dump()))

    @app.route('/api/orders', methods=['POST'])
    def place_order():
        body = parse(PlaceOrderRequest)
        kwargs = {'fulfillment': body.fulfillment}
        if body.delivery_fee is not None:
            kwargs['delivery_fee'] = body.delivery_fee

        result = market.place_order(
            current_session_id(), user_id=request.headers.get('X-User-Id'),
            promo_code=body.promo_code, **kwargs
        )
        return jsonify(result), 201 if result['success'] else 400

    @app.route('/api/orders/<order_id>', methods=['GET'])
    def get_order(order_id):
        result = market.get_order_details(order_id)
        return jsonify(result), 200 if result['success'] else 404

    @app.route('/api/chat', methods=['POST'])
    def chat():
        """Handle support chat messages"""
        body = parse(ChatRequest)
        user_id = request.headers.get('X-User-Id')

        if user_id:
            result = market.send_support_message(user_id, body.message.strip())
            return jsonify(result), 200 if result['success'] else 503
        return jsonify({'success': True, 'bot_message': market.ask_support(body.message.strip())})

    @app.route('/api/chat/sessions/<chat_session_id>/close', methods=['POST'])
    def close_chat(chat_session_id):
        body = parse(CloseChatRequest)
        result = market.close_support_session(chat_session_id, body.rating)
        return jsonify(result), 200 if result['success'] else 404

    @app.route('/api/faq', methods=['GET'])
    def faq():
        entries = market.chatbot_service.get_faq(request.args.get('category'))
        return jsonify([entry.to_dict() for entry in entries])

    @app.route('/api/faq/categories', methods=['GET'])
    def faq_categories():
        return jsonify(FAQ_CATEGORIES)

    @app.route('/api/faq/<faq_id>/rate', methods=['POST'])
    def rate_faq(faq_id):
        body = parse(RateFAQRequest)
        result = market.rate_faq(faq_id, body.helpful)
        return jsonify(result), 200 if result['success'] else 404

    @app.route('/api/experiments/<experiment_id>/assign', methods=['POST'])
    def assign_variant(experiment_id):
        user_id = request.headers.get('X-User-Id')
        if not user_id:
            return jsonify({'success': False, 'error': 'Not authenticated'}), 401
        result = market.assign_variant(experiment_id, user_id)
        return jsonify(result), 200 if result['success'] else 404

    @app.route('/api/experiments/assignments/<assignment_id>/convert', methods=['POST'])
    def track_conversion(assignment_id):
        body = parse(ConversionRequest)
        result = market.track_conversion(assignment_id, body.value)
        return jsonify(result), 200 if result['success'] else 404

    @app.route('/health')
    def health():
        """Health check endpoint"""
        return jsonify({'status': 'ok', 'message': 'EatLocal API is running!'})

    return app


if __name__ == '__main__':
    config.configure_logging()
    app = create_app()

    print("=== EatLocal API Server ===")
    print(f"Starting server on http://localhost:{config.PORT}")
    print("Press Ctrl+C to stop")

    app.run(
        host='0.0.0.0',
        port=config.PORT,
        debug=config.DEBUG
    )
