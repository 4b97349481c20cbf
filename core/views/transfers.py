"""
Inter-facility transfer endpoints.

``PATCH /api/transfers/<id>`` edits the request or, with a ``status`` in
the body, moves it along its workflow.  ``DELETE`` cancels; transfers
are never removed.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.services.transfers import TransferService


@api_view(['GET', 'POST'])
def transfers(request):
    service = TransferService.for_request(request)
    if request.method == 'POST':
        return Response(service.create(request.data), status=status.HTTP_201_CREATED)
    return Response(service.list(request.query_params).as_dict())


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
def transfer_detail(request, pk: int):
    service = TransferService.for_request(request)
    if request.method == 'GET':
        return Response(service.get(pk))
    if request.method == 'DELETE':
        return Response(service.cancel(pk, request.data))
    return Response(service.update(pk, request.data))


@api_view(['POST'])
def transfer_approve(request, pk: int):
    return Response(TransferService.for_request(request).approve(pk, request.data))


@api_view(['POST'])
def transfer_reject(request, pk: int):
    return Response(TransferService.for_request(request).reject(pk, request.data))


@api_view(['GET'])
def available_beds(request):
    return Response(TransferService.for_request(request).available_beds(request.query_params))
