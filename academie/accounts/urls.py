from django.urls import path

from .auth import login, logout, me

urlpatterns = [
    path('auth/login/', login, name='auth-login'),
    path('auth/logout/', logout, name='auth-logout'),
    path('auth/me/', me, name='auth-me'),
]
