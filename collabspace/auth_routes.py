import logging
import secrets
from urllib.parse import urlencode

from flask import Blueprint, current_app, jsonify, redirect, request, session
from flask_jwt_extended import set_access_cookies

from collabspace import get_services
from collabspace.oauth import OAuthError
from collabspace.utils import json_body, respond

auth_bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)


@auth_bp.route('/signup', methods=['POST'])
def signup():
    data = json_body()
    result = get_services().accounts.signup(
        email=data.get('email'),
        password=data.get('password'),
        confirm_password=data.get('confirm_password'),
        first_name=data.get('first_name'),
        last_name=data.get('last_name'),
        handle=data.get('handle'),
    )
    return respond(result)


@auth_bp.route('/verify-otp', methods=['POST'])
def verify_otp():
    data = json_body()
    return respond(get_services().accounts.verify_email(data.get('email'), data.get('otp')))


@auth_bp.route('/resend-otp', methods=['POST'])
def resend_otp():
    return respond(get_services().accounts.resend_otp(json_body().get('email')))


@auth_bp.route('/check-user', methods=['POST'])
def check_user():
    result = get_services().accounts.check_user(json_body().get('email'))
    body = {'exists': result.data.get('exists', False)}
    if not result.success:
        body['error'] = result.error
    return jsonify(body), result.status_code


@auth_bp.route('/verify-email', methods=['POST'])
def verify_email():
    """Legacy link-based verification."""
    result = get_services().accounts.verify_email_link(json_body().get('token'))
    if result.success:
        return jsonify({'success': True}), 200
    return jsonify({'error': result.error}), result.status_code


@auth_bp.route('/login', methods=['POST'])
def login():
    data = json_body()
    return respond(get_services().accounts.login(data.get('email'), data.get('password')))


@auth_bp.route('/password-reset/request', methods=['POST'])
def request_password_reset():
    return respond(get_services().accounts.request_password_reset(json_body().get('email')))


@auth_bp.route('/password-reset/confirm', methods=['POST'])
def confirm_password_reset():
    data = json_body()
    result = get_services().accounts.reset_password(data.get('email'), data.get('otp'), data.get('password'))
    return respond(result)


@auth_bp.route('/oauth/google/start', methods=['GET'])
def google_start():
    oauth = get_services().oauth
    if not oauth.configured:
        return jsonify({'success': False, 'error': 'Google OAuth not configured'}), 500

    state = secrets.token_urlsafe(16)
    session['oauth_state'] = state
    return redirect(oauth.authorization_url(state))


@auth_bp.route('/oauth/google/callback', methods=['GET'])
def google_callback():
    frontend_url = current_app.config['FRONTEND_URL']
    code = request.args.get('code')
    state = request.args.get('state')
    expected_state = session.pop('oauth_state', None)
    if not code or not state or state != expected_state:
        return redirect(f"{frontend_url}/login?{urlencode({'error': 'oauth'})}")

    services = get_services()
    try:
        profile = services.oauth.fetch_profile(code)
    except OAuthError as e:
        logger.warning("Google OAuth failed: %s", e)
        return redirect(f"{frontend_url}/login?{urlencode({'error': 'oauth'})}")

    result = services.accounts.oauth_login(services.oauth.provider, profile)
    if not result.success:
        return redirect(f"{frontend_url}/login?{urlencode({'error': 'oauth'})}")

    # New users finish their profile before reaching the app
    target = '/onboarding' if result.data['is_new_user'] else '/app'
    response = redirect(f"{frontend_url}{target}")
    set_access_cookies(response, result.data['access_token'])
    return response
