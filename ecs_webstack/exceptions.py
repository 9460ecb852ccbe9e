#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Custom exceptions for ecs-webstack
"""


class WebStackException(Exception):
    """
    Top class for ECS WebStack Exceptions
    """

    def __init__(self, msg, *args):
        super().__init__(msg, *args)


class CredentialFetchError(WebStackException):
    """
    Exception when the ECR registry credentials could not be retrieved
    """


class DecodeError(WebStackException):
    """
    Exception when the ECR authorization token is not a base64 encoded ``user:password`` string
    """


class ImageBuildError(WebStackException):
    """
    Exception when docker fails to build or push the image
    """


class ResourceDeclarationError(WebStackException):
    """
    Exception when a resource cannot be declared into the deployment graph or fails to be realized.
    """

    def __init__(self, msg, *args, title=None):
        self.title = title
        super().__init__(msg, *args)
