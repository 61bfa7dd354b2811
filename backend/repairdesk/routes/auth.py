from __future__ import annotations
from flask import Blueprint
from flask_jwt_extended import jwt_required, get_jwt_identity
from repairdesk import get_db
from repairdesk.services import auth_service
from repairdesk.utils.validation import json_body, require_fields, validate_email, validate_password, validate_role

auth_bp = Blueprint('auth', __name__)


@auth_bp.post('/signup')
def signup():
    data = json_body()
    require_fields(data, ['name', 'email', 'password', 'role'])
    validate_email(data['email'])
    validate_password(data['password'])
    validate_role(data['role'])
    user = auth_service.signup(get_db(), data['name'], data['email'], data['password'], data['role'],
                               phone=data.get('phone'))
    return {'success': True, 'message': 'User registered successfully', 'user': user.summary()}, 201


@auth_bp.post('/login')
def login():
    data = json_body()
    require_fields(data, ['email', 'password'])
    token, user = auth_service.login(get_db(), data['email'], data['password'])
    return {'success': True, 'message': 'Login successful', 'token': token, 'user': user.summary()}


@auth_bp.post('/logout')
def logout():
    # tokens are stateless; the client discards its copy
    return {'success': True, 'message': 'Logged out successfully. Please remove token from client.'}


@auth_bp.get('/profile')
@jwt_required()
def get_profile():
    user = auth_service.get_profile(get_db(), get_jwt_identity())
    return {'success': True, 'user': user.profile()}


@auth_bp.patch('/profile')
@jwt_required()
def update_profile():
    data = json_body()
    user = auth_service.update_profile(get_db(), get_jwt_identity(), data)
    return {'success': True, 'message': 'Profile updated successfully', 'user': user.profile()}
