#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

LB_T = "WebLoadBalancer"
TARGET_GROUP_T = "WebTargetGroup"
LISTENER_T = "WebListener"

LB_PORT = 80
LB_PROTOCOL = "HTTP"
TARGET_TYPE = "ip"
