from __future__ import annotations
from typing import List

from pom_studio.models import Locator, PageObject, TestCase, TestCaseStep, TestData


_LOGIN_METHODS = """/**
 * Clicks the login button.
 */
public void clickLoginButton() {
    driver.findElement(loginButton).click();
}

/**
 * Enters the provided username.
 * @param username The username to enter.
 */
public void enterUsername(String username) {
    driver.findElement(usernameField).sendKeys(username);
}

/**
 * Enters the provided password.
 * @param password The password to enter.
 */
public void enterPassword(String password) {
    driver.findElement(passwordField).sendKeys(password);
}"""

_DASHBOARD_METHODS = """/**
 * Returns the welcome message text.
 * @return The welcome message.
 */
public String getWelcomeMessage() {
    return driver.findElement(welcomeHeader).getText();
}

/**
 * Clicks the logout link.
 */
public void clickLogoutLink() {
    driver.findElement(logoutLink).click();
}"""


def seed_pages() -> List[PageObject]:
    return [
        PageObject(
            id="login-page",
            name="Login Page",
            locators=[
                Locator(id="1", name="Username Field", type="id", value="username"),
                Locator(id="2", name="Password Field", type="id", value="password"),
                Locator(id="3", name="Login Button", type="xpath", value="//button[text()='Login']"),
            ],
            generated_methods=_LOGIN_METHODS,
        ),
        PageObject(
            id="dashboard-page",
            name="Dashboard",
            locators=[
                Locator(id="4", name="Welcome Header", type="css", value="h1.dashboard-welcome"),
                Locator(id="5", name="Logout Link", type="linkText", value="Logout"),
            ],
            generated_methods=_DASHBOARD_METHODS,
        ),
    ]


def seed_test_data() -> List[TestData]:
    return [
        TestData(id="data-1", key="Application URL", value="https://example.com", scope="global"),
        TestData(id="data-2", key="Admin Username", value="admin", scope="global"),
        TestData(id="data-3", key="Admin Password", value="password123", scope="global"),
        TestData(id="data-4", key="Username", value="testuser", scope="login-page"),
    ]


def seed_test_cases() -> List[TestCase]:
    steps = [
        ("step-1-1", "enterUsername"),
        ("step-1-2", "enterPassword"),
        ("step-1-3", "clickLoginButton"),
    ]
    return [
        TestCase(
            id="tc-1",
            name="Successful Login",
            steps=[
                TestCaseStep(id=sid, page_id="login-page", page_name="Login Page", method_name=m)
                for sid, m in steps
            ],
        )
    ]
